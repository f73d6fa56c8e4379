"""Admin registration for the blog."""

from __future__ import annotations

from django.contrib import admin
from mptt.admin import MPTTModelAdmin

from .models import Article, ArticleRevision, Category, Comment


class ArticleRevisionInline(admin.TabularInline):
    model = ArticleRevision
    extra = 0
    fields = ("revision_number", "title", "edited_by", "change_summary", "created_at")
    readonly_fields = fields
    can_delete = False


@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):
    list_display = ("name", "slug", "article_count")
    search_fields = ("name",)
    prepopulated_fields = {"slug": ("name",)}
    readonly_fields = ("article_count",)


@admin.register(Article)
class ArticleAdmin(admin.ModelAdmin):
    list_display = ("title", "category", "author", "status", "published_at", "view_count", "like_count", "is_deleted")
    list_filter = ("status", "category", "is_deleted")
    search_fields = ("title", "slug")
    readonly_fields = ("view_count", "like_count", "comment_count", "created_at", "updated_at")
    inlines = [ArticleRevisionInline]


@admin.register(Comment)
class CommentAdmin(MPTTModelAdmin):
    list_display = ("id", "article", "user", "status", "created_at")
    list_filter = ("status",)
    mptt_level_indent = 20
