from django.db import transaction
from rest_framework import serializers
from tenderdesk.core.models import User
from .models import Company, Employee


class CompanySerializer(serializers.ModelSerializer):
    employee_count = serializers.SerializerMethodField()

    class Meta:
        model = Company
        fields = [
            'id', 'internal_id', 'name', 'email', 'phone', 'address', 'tax_number',
            'commercial_register', 'website', 'notes', 'is_active', 'employee_count',
            'created_at', 'updated_at'
        ]
        read_only_fields = ['internal_id', 'created_at', 'updated_at']

    def get_employee_count(self, obj):
        return obj.employees.count()

    def validate_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Company name is required")
        return value


class EmployeeSerializer(serializers.ModelSerializer):
    company_name = serializers.CharField(source='company.name', read_only=True, default=None)
    username = serializers.CharField(source='user.username', read_only=True, default=None)
    password = serializers.CharField(write_only=True, required=False, allow_blank=True, min_length=6)

    class Meta:
        model = Employee
        fields = [
            'id', 'internal_id', 'full_name', 'email', 'phone', 'national_id', 'department',
            'job_title', 'role', 'status', 'hire_date', 'salary', 'notes',
            'company', 'company_name', 'user', 'username', 'password',
            'created_at', 'updated_at'
        ]
        read_only_fields = ['internal_id', 'user', 'created_at', 'updated_at']

    def validate_email(self, value):
        value = value.strip().lower()
        employees = Employee.objects.filter(email__iexact=value)
        if self.instance:
            employees = employees.exclude(pk=self.instance.pk)
        if employees.exists():
            raise serializers.ValidationError("An employee with this email already exists")
        users = User.objects.filter(username__iexact=value)
        if self.instance and self.instance.user_id:
            users = users.exclude(pk=self.instance.user_id)
        if users.exists():
            raise serializers.ValidationError("A login account with this email already exists")
        return value

    def validate_national_id(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("National ID is required")
        return value

    def validate_salary(self, value):
        if value is not None and value < 0:
            raise serializers.ValidationError("Salary cannot be negative")
        return value

    @transaction.atomic
    def create(self, validated_data):
        password = validated_data.pop('password', None)
        first_name, _, last_name = validated_data['full_name'].partition(' ')
        user = User(
            username=validated_data['email'],
            email=validated_data['email'],
            first_name=first_name[:150],
            last_name=last_name[:150],
            phone=validated_data.get('phone') or None,
        )
        if password:
            user.set_password(password)
        else:
            user.set_unusable_password()
        user.save()
        validated_data['user'] = user
        return super().create(validated_data)

    @transaction.atomic
    def update(self, instance, validated_data):
        password = validated_data.pop('password', None)
        employee = super().update(instance, validated_data)
        user = employee.user
        if user:
            user.username = employee.email
            user.email = employee.email
            if password:
                user.set_password(password)
            user.save()
        return employee
