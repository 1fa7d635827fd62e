# apps/core/admin.py

from django.contrib import admin
from django.db.models import Count
from django.utils.html import format_html

from apps.painel.status import STATUS_META
from .models import Board, Column, Label, Product, SavedProduct, Task


class ProductInline(admin.TabularInline):
    """Inline para produtos do board"""
    model = Product
    extra = 0
    fields = ['name', 'started_date', 'period', 'price', 'cost', 'sort_order']
    ordering = ['sort_order']


class ColumnInline(admin.TabularInline):
    model = Column
    extra = 0
    fields = ['title', 'sort_order']
    ordering = ['sort_order']


@admin.register(Board)
class BoardAdmin(admin.ModelAdmin):
    """Admin para boards Kanban"""

    list_display = [
        'title', 'user', 'sort_order', 'tasks_count',
        'annual', 'ending_date', 'status_badge', 'created_at'
    ]
    list_filter = ['created_at', 'user']
    search_fields = ['title', 'notes', 'user__username']
    readonly_fields = ['annual', 'ending_date', 'created_at', 'updated_at']
    filter_horizontal = ['labels']

    fieldsets = (
        ('Informações Básicas', {
            'fields': ('title', 'color', 'user', 'sort_order', 'labels', 'notes')
        }),
        ('Valores', {
            'fields': (
                'total_value', 'upcoming_value', 'received_value',
                'started_date', 'annual', 'ending_date'
            )
        }),
        ('Datas', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        })
    )

    inlines = [ColumnInline, ProductInline]

    def get_queryset(self, request):
        return super().get_queryset(request).annotate(
            _tasks_count=Count('columns__tasks', distinct=True)
        )

    def tasks_count(self, obj):
        """Total de tarefas do board"""
        return obj._tasks_count

    tasks_count.short_description = 'Tarefas'
    tasks_count.admin_order_field = '_tasks_count'

    def status_badge(self, obj):
        """Status financeiro com badge colorido"""
        meta = STATUS_META.get(obj.status)
        if meta is None:
            return '-'
        return format_html(
            '<span style="background-color: {}; color: white; '
            'padding: 3px 8px; border-radius: 4px; font-size: 11px;">{}</span>',
            meta['cor'], meta['label']
        )

    status_badge.short_description = 'Status'

    def save_related(self, request, form, formsets, change):
        super().save_related(request, form, formsets, change)
        form.instance.refresh_aggregates()


class TaskInline(admin.TabularInline):
    """Inline para tarefas da coluna"""
    model = Task
    extra = 0
    fields = ['title', 'assignee', 'priority', 'due_date', 'sort_order']
    ordering = ['sort_order']


@admin.register(Column)
class ColumnAdmin(admin.ModelAdmin):
    """Admin para colunas do Kanban"""

    list_display = ['title', 'board', 'sort_order', 'tasks_count']
    list_filter = ['board']
    search_fields = ['title', 'board__title']
    ordering = ['board', 'sort_order']

    inlines = [TaskInline]

    def tasks_count(self, obj):
        return obj.tasks.count()

    tasks_count.short_description = 'Tarefas'


@admin.register(Task)
class TaskAdmin(admin.ModelAdmin):
    """Admin para tarefas"""

    list_display = [
        'title', 'priority_badge', 'assignee', 'column',
        'due_date', 'sort_order', 'updated_at'
    ]
    list_filter = ['priority', 'column__board', 'created_at']
    search_fields = ['title', 'description', 'assignee']
    date_hierarchy = 'created_at'
    readonly_fields = ['created_at', 'updated_at']

    def priority_badge(self, obj):
        """Badge colorido para prioridade"""
        cores = {
            'low': '#10B981',  # verde
            'medium': '#F59E0B',  # amarelo
            'high': '#EF4444'  # vermelho
        }
        return format_html(
            '<span style="background-color: {}; color: white; '
            'padding: 3px 8px; border-radius: 4px; font-size: 11px;">{}</span>',
            cores.get(obj.priority, '#6B7280'),
            obj.get_priority_display()
        )

    priority_badge.short_description = 'Prioridade'


@admin.register(Label)
class LabelAdmin(admin.ModelAdmin):
    list_display = ['text', 'color_preview', 'user', 'created_at']
    search_fields = ['text']
    list_filter = ['user']

    def color_preview(self, obj):
        """Preview da classe de cor"""
        return format_html('<code>{}</code>', obj.color)

    color_preview.short_description = 'Cor'


@admin.register(SavedProduct)
class SavedProductAdmin(admin.ModelAdmin):
    list_display = ['name', 'user', 'created_at']
    search_fields = ['name']
    list_filter = ['user']
