from rest_framework import serializers
from .models import User


class UserSerializer(serializers.ModelSerializer):
    """Staff profile with role and assigned store."""

    class Meta:
        model = User
        fields = [
            'id',
            'email',
            'display_name',
            'role',
            'default_store',
            'created_at',
            'last_login',
        ]
        read_only_fields = fields


class UserMinimalSerializer(serializers.ModelSerializer):
    """Minimal user info for nested serialization."""

    display_name = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = ['id', 'display_name', 'role']
        read_only_fields = fields

    def get_display_name(self, obj):
        return obj.get_display_name()


class UserLoginSerializer(serializers.Serializer):
    """Serializer for staff login."""

    email = serializers.EmailField(required=True)
    password = serializers.CharField(
        required=True,
        write_only=True,
        style={'input_type': 'password'}
    )
