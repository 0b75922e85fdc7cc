from django.contrib import admin

from .models import College, Region


@admin.register(Region)
class RegionAdmin(admin.ModelAdmin):
    list_display = ('code', 'name', 'district_head', 'is_active')
    search_fields = ('code', 'name')


@admin.register(College)
class CollegeAdmin(admin.ModelAdmin):
    list_display = ('code', 'name', 'region', 'admin_user', 'is_active')
    list_filter = ('region', 'is_active')
    search_fields = ('code', 'name')
