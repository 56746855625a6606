from django.db import models
from django.contrib.auth.models import AbstractUser


class User(AbstractUser):
    """
    Platform user. Reviewers receive deadline reminders
    at their e-mail address, addressed by display name.
    """

    name = models.CharField(max_length=150, blank=True)

    @property
    def display_name(self):
        return self.name or self.get_full_name() or self.username

    def __str__(self):
        return f"{self.display_name} ({self.username})"
