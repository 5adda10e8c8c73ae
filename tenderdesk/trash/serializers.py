from rest_framework import serializers
from .models import TrashItem


class TrashItemSerializer(serializers.ModelSerializer):
    deleted_by_username = serializers.CharField(source='deleted_by.username', read_only=True, default=None)

    class Meta:
        model = TrashItem
        fields = ['id', 'internal_id', 'original_model', 'original_id', 'display_name', 'object_count',
                  'context', 'deleted_by', 'deleted_by_username', 'deleted_at']


class TrashItemDetailSerializer(TrashItemSerializer):
    class Meta(TrashItemSerializer.Meta):
        fields = TrashItemSerializer.Meta.fields + ['payload']
