from django.conf import settings
from django.db import models


class ActivityLog(models.Model):
    ACTION_CHOICES = (
        ('CREATE', 'Create'),
        ('UPDATE', 'Update'),
        ('DELETE', 'Delete'),
        ('APPROVE', 'Approve'),
        ('REJECT', 'Reject'),
    )

    action = models.CharField(max_length=10, choices=ACTION_CHOICES)
    entity = models.CharField(max_length=50)
    entity_id = models.CharField(max_length=64, blank=True)
    entity_title = models.CharField(max_length=255, blank=True)
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True)
    # Copied at write time so the log survives user renames and deletions
    user_name = models.CharField(max_length=150)
    user_role = models.CharField(max_length=20, blank=True)
    details = models.JSONField(default=dict, blank=True)
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        ordering = ('-created_at',)
        verbose_name = 'Log aktivitas'
        verbose_name_plural = 'Log aktivitas'

    def __str__(self):
        return f"{self.user_name} {self.action} {self.entity} {self.entity_title}".strip()
