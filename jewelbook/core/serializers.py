from rest_framework import serializers
from django.contrib.auth.password_validation import validate_password
from .models import User, Setting, AuditLog, Notification, Todo


class UserSerializer(serializers.ModelSerializer):
    is_admin = serializers.BooleanField(read_only=True)

    class Meta:
        model = User
        fields = ['id', 'username', 'email', 'first_name', 'last_name', 'phone', 'role', 'is_admin',
                  'is_active', 'last_login', 'created_at', 'updated_at']
        read_only_fields = ['role', 'is_active', 'last_login', 'created_at', 'updated_at']


class UserCreateSerializer(serializers.ModelSerializer):
    password = serializers.CharField(write_only=True, validators=[validate_password])
    password_confirm = serializers.CharField(write_only=True)

    class Meta:
        model = User
        fields = ['username', 'email', 'password', 'password_confirm', 'first_name', 'last_name', 'phone']

    def validate(self, attrs):
        if attrs['password'] != attrs['password_confirm']:
            raise serializers.ValidationError({"password": "Passwords don't match"})
        return attrs

    def create(self, validated_data):
        validated_data.pop('password_confirm')
        password = validated_data.pop('password')
        # Self-registered accounts always start as plain users
        user = User(**validated_data, is_active=True, role=User.ROLE_USER)
        user.set_password(password)
        user.save()
        return user


class RoleSerializer(serializers.Serializer):
    role = serializers.ChoiceField(choices=User.ROLE_CHOICES, error_messages={
        'invalid_choice': 'Invalid role specified',
        'required': 'Invalid role specified',
    })


class SettingSerializer(serializers.ModelSerializer):
    class Meta:
        model = Setting
        fields = ['id', 'key', 'value', 'description', 'updated_at']


class AuditLogSerializer(serializers.ModelSerializer):
    username = serializers.CharField(source='user.username', read_only=True, allow_null=True)

    class Meta:
        model = AuditLog
        fields = ['id', 'user', 'username', 'action', 'model_name', 'object_id', 'object_name',
                  'object_reference', 'changes', 'ip_address', 'created_at']


class NotificationSerializer(serializers.ModelSerializer):
    class Meta:
        model = Notification
        fields = ['id', 'title', 'message', 'type', 'is_read', 'created_at']
        read_only_fields = ['title', 'message', 'type', 'created_at']


class NotificationReadSerializer(serializers.Serializer):
    id = serializers.IntegerField(error_messages={'required': 'Notification id is required'})
    is_read = serializers.BooleanField(default=True)


class NotificationDeleteSerializer(serializers.Serializer):
    id = serializers.IntegerField(required=False)
    delete_all = serializers.BooleanField(default=False)


class TodoSerializer(serializers.ModelSerializer):
    class Meta:
        model = Todo
        fields = ['id', 'title', 'is_completed', 'due_date', 'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']
