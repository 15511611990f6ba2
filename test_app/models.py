from django.conf import settings
from django.db import models


class Country(models.Model):
    name = models.CharField(max_length=100)
    code = models.CharField(max_length=2)

    class Meta:
        app_label = "test_app"
        verbose_name_plural = "countries"


class Industry(models.Model):
    name = models.CharField(max_length=100)

    class Meta:
        app_label = "test_app"
        verbose_name_plural = "industries"


class Company(models.Model):
    name = models.CharField(max_length=200)
    website = models.URLField(blank=True)
    revenue = models.DecimalField(max_digits=14, decimal_places=2, null=True, blank=True)
    status = models.CharField(max_length=20, default="active")
    custom_data = models.JSONField(default=dict, blank=True)
    country = models.ForeignKey(
        Country, on_delete=models.SET_NULL, null=True, related_name="companies"
    )
    industry = models.ForeignKey(
        Industry, on_delete=models.SET_NULL, null=True, related_name="companies"
    )

    class Meta:
        app_label = "test_app"
        verbose_name_plural = "companies"

    def to_label(self):
        return self.name


class Contact(models.Model):
    first_name = models.CharField(max_length=100, blank=True)
    last_name = models.CharField(max_length=100)
    email = models.EmailField(blank=True)
    phone = models.CharField(max_length=30, blank=True)
    company = models.ForeignKey(
        Company, on_delete=models.CASCADE, null=True, related_name="contacts"
    )

    class Meta:
        app_label = "test_app"
        verbose_name_plural = "contacts"


class Deal(models.Model):
    title = models.CharField(max_length=200)
    value = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    stage = models.CharField(max_length=30, default="open")
    status = models.CharField(max_length=20, default="open")
    company = models.ForeignKey(Company, on_delete=models.CASCADE, related_name="deals")
    contact = models.ForeignKey(
        Contact, on_delete=models.SET_NULL, null=True, related_name="deals"
    )
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, related_name="+"
    )

    class Meta:
        app_label = "test_app"
        verbose_name_plural = "deals"

    def display_name(self):
        return f"{self.title} ({self.stage})"
