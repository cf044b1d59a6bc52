from django.contrib.auth.models import AbstractUser, BaseUserManager
from django.db import models
from django.utils.translation import gettext_lazy as _


class UserManager(BaseUserManager):
    """
    Custom manager to easily create different types of school users.
    """

    def create_user(self, email, password=None, **extra_fields):
        """Base method for creating a generic user."""
        if not email:
            raise ValueError(_('The Email must be set'))
        email = self.normalize_email(email)
        user = self.model(email=email, **extra_fields)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_superuser(self, email, password=None, **extra_fields):
        """Create a Superuser (Platform Owner)."""
        extra_fields.setdefault('is_staff', True)
        extra_fields.setdefault('is_superuser', True)
        extra_fields.setdefault('is_active', True)

        if extra_fields.get('is_staff') is not True:
            raise ValueError(_('Superuser must have is_staff=True.'))
        if extra_fields.get('is_superuser') is not True:
            raise ValueError(_('Superuser must have is_superuser=True.'))

        return self.create_user(email, password, **extra_fields)

    # --- ROLE SPECIFIC HELPERS ---

    def create_school_admin(self, email, password=None, **extra_fields):
        """Create a School Administrator (direction, control escolar)."""
        extra_fields.setdefault('is_school_admin', True)
        extra_fields.setdefault('is_staff', False)
        return self.create_user(email, password, **extra_fields)

    def create_auditor(self, email, password=None, **extra_fields):
        """Create an Auditor. Auditors read everything and change nothing."""
        extra_fields.setdefault('is_auditor', True)
        return self.create_user(email, password, **extra_fields)

    def create_teacher(self, email, password=None, **extra_fields):
        extra_fields.setdefault('is_teacher', True)
        return self.create_user(email, password, **extra_fields)

    def create_tutor(self, email, password=None, **extra_fields):
        """Create a Tutor (the guardian responsible for one or more students)."""
        extra_fields.setdefault('is_tutor', True)
        return self.create_user(email, password, **extra_fields)


class User(AbstractUser):
    class Department(models.TextChoices):
        SECRETARY = 'secretary', _('Secretary')
        DIRECTION = 'direction', _('Direction')
        SCHOOL_CONTROL = 'school_control', _('School Control')
        TECHNOLOGY = 'technology', _('Technology')

    class Status(models.TextChoices):
        ACTIVE = 'active', _('Active')
        INACTIVE = 'inactive', _('Inactive')

    username = None
    email = models.EmailField(_('email address'), unique=True)

    # Roles / Flags
    is_school_admin = models.BooleanField(default=False)
    is_auditor = models.BooleanField(default=False)
    is_teacher = models.BooleanField(default=False)
    is_tutor = models.BooleanField(default=False)

    department = models.CharField(max_length=20, choices=Department.choices, blank=True)
    status = models.CharField(max_length=10, choices=Status.choices, default=Status.ACTIVE)

    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = []

    objects = UserManager()

    def __str__(self):
        return self.email

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}".strip() or self.email

    @property
    def role_label(self):
        """Helper to get a string representation of the user's role"""
        if self.is_superuser: return "Super Admin"
        if self.is_school_admin: return "School Admin"
        if self.is_auditor: return "Auditor"
        if self.is_teacher: return "Teacher"
        if self.is_tutor: return "Tutor"
        return "User"

    @property
    def roles(self):
        """All role keys held by the user, highest first."""
        flags = [
            ('superadmin', self.is_superuser),
            ('admin', self.is_school_admin),
            ('auditor', self.is_auditor),
            ('teacher', self.is_teacher),
            ('tutor', self.is_tutor),
        ]
        return [name for name, enabled in flags if enabled]


def can_view_all(user):
    """Superadmins, school admins and auditors see every record of the school."""
    if user is None or not user.is_authenticated:
        return False
    return bool(user.is_superuser or user.is_school_admin or user.is_auditor)
