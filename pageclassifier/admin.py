from django.contrib import admin

from .models import ClassificationRun


@admin.register(ClassificationRun)
class ClassificationRunAdmin(admin.ModelAdmin):
    list_display = ('url', 'success', 'page_title', 'topic_limit', 'total_time', 'created_at')
    list_filter = ('success',)
    search_fields = ('url', 'page_title', 'error')
