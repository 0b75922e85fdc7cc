from django.conf import settings
from django.db import models


class Region(models.Model):
    """Administrative region grouping colleges under at most one district head.

    The single-head rule is enforced by the code that assigns heads, not by
    the database.
    """

    name = models.CharField(max_length=128, unique=True)
    code = models.CharField(max_length=32, unique=True)
    district_head = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='headed_regions',
    )
    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ('code',)

    def __str__(self):
        return f"{self.code} - {self.name}"


class College(models.Model):
    """A college is the tenant: almost every other record carries a `college` FK."""

    code = models.CharField(max_length=32, unique=True, help_text='Short college code')
    name = models.CharField(max_length=255)
    region = models.ForeignKey(Region, on_delete=models.PROTECT, related_name='colleges')
    admin_user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='administered_college',
    )
    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = 'College'
        verbose_name_plural = 'Colleges'

    def __str__(self):
        return f"{self.code} - {self.name}"
