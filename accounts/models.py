from django.contrib.auth.models import AbstractUser
from django.db import models, transaction


class Member(AbstractUser):
    ROLE_SELLER = "SELLER"
    ROLE_BUYER = "BUYER"

    role_choices = [
        (ROLE_SELLER, "Seller"),
        (ROLE_BUYER, "Buyer"),
    ]

    email = models.EmailField(unique=True, verbose_name="Email")
    name = models.CharField(max_length=150, verbose_name="Full name")
    cpf = models.CharField(max_length=14, blank=True, verbose_name="CPF")
    phone = models.CharField(max_length=20, blank=True, verbose_name="Phone")
    birthdate = models.DateField(null=True, blank=True, verbose_name="Birthdate")
    role = models.CharField(
        max_length=10, choices=role_choices, default=ROLE_SELLER, verbose_name="Role"
    )
    login_failed_count = models.IntegerField(default=0, verbose_name="Failed logins")

    class Meta:
        verbose_name = "Member"
        verbose_name_plural = "Members"

    def save(self, *args, **kwargs):
        """Login is by email, so the username simply mirrors it"""
        if self.email:
            self.email = self.email.strip().lower()
        if not self.username:
            self.username = self.email
        super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.name or self.email}({self.get_role_display()})"


class Address(models.Model):
    user = models.ForeignKey(
        Member,
        on_delete=models.CASCADE,
        related_name="addresses",
        verbose_name="Member",
    )
    zip_code = models.CharField(max_length=9, verbose_name="ZIP code")
    street = models.CharField(max_length=200, verbose_name="Street")
    number = models.CharField(max_length=20, verbose_name="Number")
    complement = models.CharField(max_length=100, blank=True, verbose_name="Complement")
    neighborhood = models.CharField(max_length=100, blank=True, verbose_name="Neighborhood")
    city = models.CharField(max_length=100, verbose_name="City")
    state = models.CharField(max_length=50, verbose_name="State")
    is_primary = models.BooleanField(default=False, verbose_name="Primary address")
    created_at = models.DateTimeField(auto_now_add=True, verbose_name="Created at")

    class Meta:
        verbose_name = "Address"
        verbose_name_plural = "Addresses"
        ordering = ["-is_primary", "-created_at"]

    def __str__(self):
        return f"{self.street}, {self.number} - {self.city}/{self.state}"

    def save(self, *args, **kwargs):
        # Only one primary address per member
        with transaction.atomic():
            super().save(*args, **kwargs)
            if self.is_primary:
                Address.objects.filter(user_id=self.user_id, is_primary=True).exclude(
                    pk=self.pk
                ).update(is_primary=False)
