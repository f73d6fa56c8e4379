from __future__ import annotations

from rest_framework import serializers  # type: ignore

from .models import Article, ArticleRevision, Category, Comment


class CategorySerializer(serializers.ModelSerializer):
    class Meta:
        model = Category
        fields = ["id", "name", "slug", "description", "color", "article_count"]
        read_only_fields = ["slug", "article_count"]

    def validate_color(self, value: str) -> str:
        if not value.startswith("#") or len(value) not in (4, 7):
            raise serializers.ValidationError("Couleur hexadécimale attendue (#RRGGBB).")
        return value


class AuthorSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    display_name = serializers.CharField()


class ArticleListSerializer(serializers.ModelSerializer):
    category = CategorySerializer(read_only=True)
    author = AuthorSerializer(read_only=True)
    reading_time = serializers.IntegerField(read_only=True)

    class Meta:
        model = Article
        fields = [
            "id",
            "title",
            "slug",
            "excerpt",
            "featured_image",
            "category",
            "author",
            "status",
            "published_at",
            "reading_time",
            "view_count",
            "like_count",
            "comment_count",
        ]


class ArticleDetailSerializer(ArticleListSerializer):
    class Meta(ArticleListSerializer.Meta):
        fields = ArticleListSerializer.Meta.fields + [
            "content",
            "meta_title",
            "meta_description",
            "meta_keywords",
            "created_at",
            "updated_at",
        ]


class ArticleWriteSerializer(serializers.ModelSerializer):
    category = serializers.PrimaryKeyRelatedField(queryset=Category.objects.all(), required=False, allow_null=True)
    change_summary = serializers.CharField(required=False, allow_blank=True, write_only=True)

    class Meta:
        model = Article
        fields = [
            "title",
            "content",
            "excerpt",
            "featured_image",
            "category",
            "status",
            "meta_title",
            "meta_description",
            "meta_keywords",
            "change_summary",
        ]

    def validate_meta_keywords(self, value):  # type: ignore
        if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
            raise serializers.ValidationError("Liste de mots-clés attendue.")
        return value


class ArticleRevisionSerializer(serializers.ModelSerializer):
    edited_by = serializers.CharField(source="edited_by.display_name", read_only=True, default="")

    class Meta:
        model = ArticleRevision
        fields = ["id", "revision_number", "title", "content", "excerpt", "edited_by", "change_summary", "created_at"]


class CommentSerializer(serializers.ModelSerializer):
    author = serializers.CharField(source="user.display_name", read_only=True)
    replies = serializers.SerializerMethodField()

    class Meta:
        model = Comment
        fields = ["id", "author", "content", "status", "parent", "created_at", "replies"]
        read_only_fields = ["status", "parent", "created_at"]

    def get_replies(self, obj: Comment) -> list:
        children = [child for child in obj.get_children() if child.status == Comment.Status.APPROVED]
        return CommentSerializer(children, many=True, context=self.context).data


class CommentCreateSerializer(serializers.Serializer):
    content = serializers.CharField(max_length=2000)
    parent = serializers.PrimaryKeyRelatedField(queryset=Comment.objects.all(), required=False, allow_null=True)


class AdminCommentSerializer(serializers.ModelSerializer):
    author = serializers.CharField(source="user.email", read_only=True)
    article_title = serializers.CharField(source="article.title", read_only=True)

    class Meta:
        model = Comment
        fields = ["id", "article", "article_title", "author", "content", "status", "parent", "level", "created_at"]
        read_only_fields = fields


class ModerationSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Comment.Status.choices)
