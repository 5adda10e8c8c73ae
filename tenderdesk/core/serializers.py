from django.conf import settings
from django.contrib.auth.password_validation import validate_password
from rest_framework import serializers
from .models import User, Setting, ActivityLog, PendingData, Document


class UserSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ['id', 'username', 'email', 'first_name', 'last_name', 'phone', 'is_active', 'is_staff', 'is_superuser', 'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']


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
        user = User.objects.create(**validated_data, is_active=True)
        user.set_password(password)
        user.save()
        return user


class SettingSerializer(serializers.ModelSerializer):
    class Meta:
        model = Setting
        fields = ['id', 'key', 'value', 'description', 'updated_at']


class ActivityLogSerializer(serializers.ModelSerializer):
    username = serializers.CharField(source='user.username', read_only=True, default=None)

    class Meta:
        model = ActivityLog
        fields = ['id', 'internal_id', 'user', 'username', 'action', 'model_name', 'object_id',
                  'object_name', 'description', 'changes', 'ip_address', 'created_at']
        read_only_fields = ['internal_id', 'user', 'ip_address', 'created_at']


class PendingDataSerializer(serializers.ModelSerializer):
    class Meta:
        model = PendingData
        fields = ['key', 'payload', 'created_at', 'updated_at']
        read_only_fields = ['key', 'created_at', 'updated_at']


class DocumentSerializer(serializers.ModelSerializer):
    uploaded_by_username = serializers.CharField(source='uploaded_by.username', read_only=True, default=None)
    url = serializers.SerializerMethodField()

    class Meta:
        model = Document
        fields = ['id', 'owner_type', 'owner_id', 'file', 'file_name', 'content_type', 'size',
                  'description', 'url', 'uploaded_by', 'uploaded_by_username', 'created_at']
        read_only_fields = ['file_name', 'content_type', 'size', 'uploaded_by', 'created_at']
        extra_kwargs = {'file': {'write_only': True}}

    def get_url(self, obj):
        if not obj.file:
            return None
        request = self.context.get('request')
        url = obj.file.url
        return request.build_absolute_uri(url) if request else url

    def validate_file(self, value):
        max_bytes = settings.MAX_UPLOAD_SIZE_MB * 1024 * 1024
        if value.size > max_bytes:
            raise serializers.ValidationError(f"File exceeds the {settings.MAX_UPLOAD_SIZE_MB} MB limit")
        return value

    def validate(self, attrs):
        owner_type = attrs.get('owner_type')
        owner_id = attrs.get('owner_id')
        model = Document.owner_model_for(owner_type)
        if not model.objects.filter(pk=owner_id).exists():
            raise serializers.ValidationError({'owner_id': f"{model._meta.verbose_name.title()} {owner_id} does not exist"})
        return attrs

    def create(self, validated_data):
        upload = validated_data['file']
        validated_data['file_name'] = upload.name
        validated_data['content_type'] = getattr(upload, 'content_type', '') or ''
        validated_data['size'] = upload.size
        return super().create(validated_data)
