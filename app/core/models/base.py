"""Shared abstract models and mixins."""
import uuid
from django.db import models
from django.utils import timezone


class AppendOnlyViolation(Exception):
    """Raised when code tries to rewrite or remove an append-only record."""


class UUIDPrimaryKeyModel(models.Model):
    """Abstract model that sets a UUID primary key."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    class Meta:
        abstract = True


class TimestampedModel(models.Model):
    """Adds created/updated timestamps."""

    created_at = models.DateTimeField(default=timezone.now, editable=False)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class AppendOnlyQuerySet(models.QuerySet):
    def update(self, **kwargs):
        raise AppendOnlyViolation(f"{self.model.__name__} rows cannot be updated")

    def delete(self):
        raise AppendOnlyViolation(f"{self.model.__name__} rows cannot be deleted")


class AppendOnlyModel(models.Model):
    """Rows are inserted once and never rewritten or deleted."""

    objects = AppendOnlyQuerySet.as_manager()

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise AppendOnlyViolation(f"{self.__class__.__name__} {self.pk} is immutable")
        kwargs["force_insert"] = True
        super().save(*args, **kwargs)

    def delete(self, using=None, keep_parents=False):
        raise AppendOnlyViolation(f"{self.__class__.__name__} {self.pk} cannot be deleted")

    class Meta:
        abstract = True


class CoreBaseModel(UUIDPrimaryKeyModel, TimestampedModel):
    """Default base model to inherit across apps."""

    class Meta:
        abstract = True
