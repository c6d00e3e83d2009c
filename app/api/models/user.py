from django.contrib.auth.models import AbstractBaseUser, BaseUserManager, PermissionsMixin
from django.db import models


class UserManager(BaseUserManager):
  """Custom manager for User model with handle as the identifier."""

  def create_user(self, handle, password=None, **extra_fields):
    if not handle:
      raise ValueError('Users must have a handle')
    user = self.model(handle=handle, **extra_fields)
    if password:
      user.set_password(password)
    else:
      user.set_unusable_password()
    user.save(using=self._db)
    return user

  def create_superuser(self, handle, password=None, **extra_fields):
    extra_fields.setdefault('is_staff', True)
    extra_fields.setdefault('is_superuser', True)
    return self.create_user(handle, password, **extra_fields)


class User(AbstractBaseUser, PermissionsMixin):
  """
  streamDrop streamer. Profile and overlay settings are owned by the
  onboarding flow; the settlement core only reads them (wallet address
  for routing, min_donation for validation).
  """
  handle = models.CharField(max_length=100, unique=True)
  display_name = models.CharField(max_length=100, blank=True)
  avatar_url = models.URLField(blank=True, default='')
  wallet_address = models.CharField(max_length=42, blank=True, default='')
  min_donation = models.DecimalField(max_digits=18, decimal_places=6, default=1)

  # Overlay display settings
  voice_name = models.CharField(max_length=100, blank=True, default='')
  voice_rate = models.FloatField(default=1.0)
  voice_pitch = models.FloatField(default=1.0)
  gif_url = models.URLField(blank=True, default='')

  is_active = models.BooleanField(default=True)
  is_staff = models.BooleanField(default=False)
  created_at = models.DateTimeField(auto_now_add=True)
  updated_at = models.DateTimeField(auto_now=True)

  objects = UserManager()

  USERNAME_FIELD = 'handle'
  REQUIRED_FIELDS = []

  class Meta:
    app_label = 'api'

  def __str__(self):
    return self.handle
