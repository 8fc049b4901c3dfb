import logging

from django.conf import settings
from django.contrib.auth import get_user_model
from django.core.exceptions import ObjectDoesNotExist
from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework_simplejwt.exceptions import AuthenticationFailed, InvalidToken, TokenError
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer, TokenRefreshSerializer
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

from .exceptions import NotFound, ValidationError
from .models import AuditLog, Notification, Setting, Todo
from .permissions import IsAdminRole
from .serializers import (
    AuditLogSerializer, NotificationDeleteSerializer, NotificationReadSerializer, NotificationSerializer,
    RoleSerializer, SettingSerializer, TodoSerializer, UserCreateSerializer, UserSerializer,
)
from .services import change_role, delete_user
from .utils import create_audit_log

User = get_user_model()
logger = logging.getLogger(__name__)


class CustomTokenObtainPairSerializer(TokenObtainPairSerializer):
    def validate(self, attrs):
        data = super().validate(attrs)
        if not self.user.is_active:
            raise AuthenticationFailed('User account is disabled.')
        data['user'] = UserSerializer(self.user).data
        return data

    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)
        token['username'] = user.username
        token['role'] = user.role
        return token


class CustomTokenObtainPairView(TokenObtainPairView):
    serializer_class = CustomTokenObtainPairSerializer


class CustomTokenRefreshSerializer(TokenRefreshSerializer):
    """Token refresh that reports deleted users as an invalid token"""
    def validate(self, attrs):
        try:
            return super().validate(attrs)
        except (InvalidToken, TokenError):
            raise InvalidToken('Token is invalid or expired.')
        except ObjectDoesNotExist:
            raise InvalidToken('Token is invalid. User no longer exists.')


class CustomTokenRefreshView(TokenRefreshView):
    serializer_class = CustomTokenRefreshSerializer


@api_view(['POST'])
@permission_classes([AllowAny])
def register(request):
    """User registration endpoint"""
    serializer = UserCreateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    user = serializer.save()
    token = CustomTokenObtainPairSerializer.get_token(user)
    logger.info(f"Registered user {user.username}")
    return Response({
        'user': UserSerializer(user).data,
        'access': str(token.access_token),
        'refresh': str(token),
    }, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH'])
@permission_classes([IsAuthenticated])
def user_me(request):
    """Current user profile; name, email and phone are editable"""
    if request.method == 'GET':
        return Response(UserSerializer(request.user).data)
    serializer = UserSerializer(request.user, data=request.data, partial=True)
    serializer.is_valid(raise_exception=True)
    serializer.save()
    return Response(serializer.data)


# Admin user management
@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def admin_user_list(request):
    """List all users"""
    users = User.objects.all().order_by('-created_at')
    search = request.query_params.get('search')
    if search:
        users = users.filter(username__icontains=search) | users.filter(email__icontains=search)
    return Response(UserSerializer(users, many=True).data)


@api_view(['PUT'])
@permission_classes([IsAuthenticated, IsAdminRole])
def admin_user_role(request, pk):
    """Change a user's role"""
    serializer = RoleSerializer(data=request.data)
    if not serializer.is_valid():
        raise ValidationError('Invalid role specified')
    user = change_role(pk, serializer.validated_data['role'], request.user, request=request)
    return Response({'message': 'Role updated successfully', 'user': UserSerializer(user).data})


@api_view(['GET', 'DELETE'])
@permission_classes([IsAuthenticated, IsAdminRole])
def admin_user_detail(request, pk):
    """Retrieve a user or delete them with the full ownership cascade"""
    if request.method == 'GET':
        return Response(UserSerializer(get_object_or_404(User, pk=pk)).data)

    summary = delete_user(pk, request.user, request=request)
    return Response({'message': 'User deleted successfully', 'deletedId': int(pk), 'summary': summary})


# Notification views
@api_view(['GET', 'PUT', 'DELETE'])
@permission_classes([IsAuthenticated])
def notifications(request):
    """
    GET: the user's most recent notifications (older ones are pruned first)
    PUT: {id, is_read} marks one notification
    DELETE: {id} removes one, {delete_all: true} removes all
    """
    own = Notification.objects.filter(user=request.user)

    if request.method == 'GET':
        retention = getattr(settings, 'NOTIFICATION_RETENTION', 10)
        keep_ids = list(own.order_by('-created_at', '-id').values_list('id', flat=True)[:retention])
        pruned, _ = own.exclude(id__in=keep_ids).delete()
        if pruned:
            logger.debug(f"Pruned {pruned} old notifications of {request.user.username}")
        queryset = Notification.objects.filter(id__in=keep_ids).order_by('-created_at', '-id')
        return Response({
            'notifications': NotificationSerializer(queryset, many=True).data,
            'unread': queryset.filter(is_read=False).count(),
        })

    if request.method == 'PUT':
        serializer = NotificationReadSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        notification = own.filter(pk=serializer.validated_data['id']).first()
        if notification is None:
            raise NotFound('Notification not found')
        notification.is_read = serializer.validated_data['is_read']
        notification.save(update_fields=['is_read'])
        return Response(NotificationSerializer(notification).data)

    serializer = NotificationDeleteSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    if serializer.validated_data['delete_all']:
        deleted, _ = own.delete()
        return Response({'message': 'All notifications deleted', 'deleted': deleted})
    notification_id = serializer.validated_data.get('id')
    if notification_id is None:
        raise ValidationError('Notification id or delete_all is required')
    deleted, _ = own.filter(pk=notification_id).delete()
    if not deleted:
        raise NotFound('Notification not found')
    return Response({'message': 'Notification deleted', 'deleted': deleted})


# Todo views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def todo_list_create(request):
    """List own todos or create a new one"""
    if request.method == 'GET':
        todos = Todo.objects.filter(user=request.user)
        return Response(TodoSerializer(todos, many=True).data)
    serializer = TodoSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    serializer.save(user=request.user)
    return Response(serializer.data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def todo_detail(request, pk):
    """Retrieve, update or delete an own todo"""
    todo = Todo.objects.filter(user=request.user, pk=pk).first()
    if todo is None:
        raise NotFound('Todo not found')

    if request.method == 'GET':
        return Response(TodoSerializer(todo).data)
    if request.method == 'DELETE':
        todo.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)
    serializer = TodoSerializer(todo, data=request.data, partial=request.method == 'PATCH')
    serializer.is_valid(raise_exception=True)
    serializer.save()
    return Response(serializer.data)


# AuditLog views
@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def audit_log_list(request):
    """Most recent audit entries, optionally filtered by action or model"""
    logs = AuditLog.objects.select_related('user')
    action = request.query_params.get('action')
    if action:
        logs = logs.filter(action=action)
    model_name = request.query_params.get('model_name')
    if model_name:
        logs = logs.filter(model_name=model_name)
    return Response(AuditLogSerializer(logs[:200], many=True).data)


# Setting views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def setting_list_create(request):
    """List all settings or create a new one"""
    if request.method == 'GET':
        return Response(SettingSerializer(Setting.objects.order_by('key'), many=True).data)
    serializer = SettingSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    setting = serializer.save()
    create_audit_log(request=request, action='create', model_name='Setting', object_id=setting.pk,
                     object_name=setting.key, changes={'value': setting.value})
    return Response(serializer.data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsAdminRole])
def setting_detail(request, pk):
    setting = get_object_or_404(Setting, pk=pk)

    if request.method == 'GET':
        return Response(SettingSerializer(setting).data)
    if request.method == 'DELETE':
        create_audit_log(request=request, action='delete', model_name='Setting', object_id=setting.pk,
                         object_name=setting.key)
        setting.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)

    old_value = setting.value
    serializer = SettingSerializer(setting, data=request.data, partial=request.method == 'PATCH')
    serializer.is_valid(raise_exception=True)
    setting = serializer.save()
    create_audit_log(request=request, action='update', model_name='Setting', object_id=setting.pk,
                     object_name=setting.key, changes={'value': {'old': old_value, 'new': setting.value}})
    return Response(serializer.data)
