from django.contrib.auth.models import AbstractBaseUser, BaseUserManager, PermissionsMixin
from django.db import models
import uuid


class Role(models.TextChoices):
    ADMIN = 'ADMIN', 'Admin'
    MANAGER = 'MANAGER', 'Manager'
    CASHIER = 'CASHIER', 'Cashier'
    BARISTA = 'BARISTA', 'Barista'


# Role groups checked by the services (the server is the authority,
# whatever the UI already hid)
DISCOUNT_ROLES = frozenset({Role.ADMIN, Role.MANAGER})
VOID_REFUND_ROLES = frozenset({Role.ADMIN, Role.MANAGER})
MANAGEMENT_ROLES = frozenset({Role.ADMIN, Role.MANAGER})
CHECKOUT_ROLES = frozenset({Role.ADMIN, Role.MANAGER, Role.CASHIER})
FULFILLMENT_ROLES = frozenset({Role.ADMIN, Role.MANAGER, Role.BARISTA, Role.CASHIER})


class UserManager(BaseUserManager):
    """Custom user manager for email-based authentication."""

    def create_user(self, email, password=None, **extra_fields):
        if not email:
            raise ValueError('Email is required')

        email = self.normalize_email(email)
        user = self.model(email=email, **extra_fields)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_superuser(self, email, password=None, **extra_fields):
        extra_fields.setdefault('is_staff', True)
        extra_fields.setdefault('is_superuser', True)
        extra_fields.setdefault('role', Role.ADMIN)

        if extra_fields.get('is_staff') is not True:
            raise ValueError('Superuser must have is_staff=True')
        if extra_fields.get('is_superuser') is not True:
            raise ValueError('Superuser must have is_superuser=True')

        return self.create_user(email, password, **extra_fields)


class User(AbstractBaseUser, PermissionsMixin):
    """Staff member with email authentication, a POS role and an assigned store."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    email = models.EmailField(unique=True, max_length=255, db_index=True)
    display_name = models.CharField(max_length=100, blank=True)

    role = models.CharField(
        max_length=10,
        choices=Role.choices,
        default=Role.CASHIER
    )
    # Non-admin staff may only act on orders of this store
    default_store = models.ForeignKey(
        'stores.Store',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='staff'
    )

    # Permissions
    is_active = models.BooleanField(default=True)
    is_staff = models.BooleanField(default=False)

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True)
    last_login = models.DateTimeField(null=True, blank=True)

    objects = UserManager()

    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = []

    class Meta:
        db_table = 'users'
        indexes = [
            models.Index(fields=['email'], name='users_email_idx'),
            models.Index(fields=['role'], name='users_role_idx'),
        ]

    def __str__(self):
        return self.email

    def get_display_name(self):
        """Return display name or email prefix."""
        return self.display_name or self.email.split('@')[0]

    def has_role(self, roles):
        return self.is_active and self.role in roles

    def has_store_access(self, store_id):
        """Admins reach every store; everyone else only their assigned one."""
        if self.role == Role.ADMIN:
            return True
        if self.default_store_id is None or store_id is None:
            return False
        return str(self.default_store_id) == str(store_id)
