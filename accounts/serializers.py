from django.contrib.auth import authenticate, password_validation
from django.contrib.auth.tokens import default_token_generator
from django.core.exceptions import ValidationError as DjangoValidationError
from django.utils.encoding import force_str
from django.utils.http import urlsafe_base64_decode
from rest_framework import serializers
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer
from rest_framework_simplejwt.settings import api_settings

from common.exceptions import DomainError
from stores.models import Store

from .choices import Role
from .models import User


class UserSerializer(serializers.ModelSerializer):
    """User profile. Role and store are managed by admins only."""

    class Meta:
        model = User
        fields = ["id", "email", "name", "phone", "role", "store", "is_active", "created_at"]
        read_only_fields = ["id", "email", "role", "store", "is_active", "created_at"]


class UserCreateSerializer(serializers.ModelSerializer):
    """Serializer for customer registration on a storefront."""

    password = serializers.CharField(write_only=True, min_length=8)
    store = serializers.PrimaryKeyRelatedField(
        queryset=Store.objects.alive().filter(is_active=True),
        required=False,
        allow_null=True,
    )

    class Meta:
        model = User
        fields = ["id", "email", "password", "name", "phone", "store"]
        read_only_fields = ["id"]

    def validate_email(self, value):
        if User.objects.filter(email__iexact=value).exists():
            raise serializers.ValidationError("An account with this email already exists.")
        return value

    def create(self, validated_data):
        return User.objects.create_user(role=Role.CUSTOMER, **validated_data)


class SessionLoginSerializer(serializers.Serializer):
    """Email + password for the cookie session login."""

    email = serializers.EmailField()
    password = serializers.CharField(write_only=True)

    def validate(self, attrs):
        user = authenticate(
            request=self.context.get("request"),
            username=attrs["email"].strip(),
            password=attrs["password"],
        )
        if user is None or not user.is_active:
            raise serializers.ValidationError(
                {"detail": "No active account found with the given credentials."}
            )
        attrs["user"] = user
        return attrs


class StoreMemberSerializer(serializers.Serializer):
    """Assign an existing user to a store as STORE_ADMIN or STAFF."""

    email = serializers.EmailField()
    role = serializers.ChoiceField(choices=[Role.STORE_ADMIN, Role.STAFF])

    def validate_email(self, value):
        user = User.objects.filter(email__iexact=value, is_active=True).first()
        if user is None:
            raise serializers.ValidationError("No active user with this email.")
        if user.role == Role.SUPER_ADMIN:
            raise serializers.ValidationError("Super admins cannot be assigned to a store.")
        self.context["member"] = user
        return value


class PasswordResetRequestSerializer(serializers.Serializer):
    email = serializers.EmailField()

    def get_user(self):
        """Active user for the email, or None. Callers must not reveal which."""
        return User.objects.filter(
            email__iexact=self.validated_data["email"].strip(), is_active=True
        ).first()


class PasswordResetConfirmSerializer(serializers.Serializer):
    """uid + token from the reset link, and the new password."""

    uid = serializers.CharField()
    token = serializers.CharField()
    new_password = serializers.CharField(write_only=True)

    def validate(self, attrs):
        try:
            pk = force_str(urlsafe_base64_decode(attrs["uid"]))
            user = User.objects.get(pk=pk, is_active=True)
        except (TypeError, ValueError, OverflowError, DjangoValidationError, User.DoesNotExist):
            user = None
        if user is None or not default_token_generator.check_token(user, attrs["token"]):
            raise DomainError("Invalid or expired reset link.", code="INVALID_OR_EXPIRED_TOKEN")
        try:
            password_validation.validate_password(attrs["new_password"], user)
        except DjangoValidationError as exc:
            raise serializers.ValidationError({"new_password": list(exc.messages)})
        attrs["user"] = user
        return attrs

    def save(self):
        user = self.validated_data["user"]
        user.set_password(self.validated_data["new_password"])
        user.save(update_fields=["password"])
        return user


class CustomTokenObtainPairSerializer(TokenObtainPairSerializer):
    """Token serializer that accepts email for login (email-based auth)."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields.pop("username", None)
        self.fields["email"] = serializers.EmailField(write_only=True, required=True)

    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)
        token["role"] = user.role
        token["store_id"] = user.store_id
        return token

    def validate(self, attrs):
        email = attrs.get("email", "").strip()
        password = attrs.get("password")

        if not email:
            raise serializers.ValidationError({"email": "Email is required."})

        request = self.context.get("request")
        self.user = authenticate(
            request=request, username=email, password=password
        )

        if not api_settings.USER_AUTHENTICATION_RULE(self.user):
            raise serializers.ValidationError(
                {"detail": "No active account found with the given credentials."}
            )

        refresh = self.get_token(self.user)
        data = {
            "refresh": str(refresh),
            "access": str(refresh.access_token),
        }

        if api_settings.UPDATE_LAST_LOGIN:
            from django.contrib.auth.models import update_last_login

            update_last_login(None, self.user)

        return data
