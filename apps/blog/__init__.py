"""Blog app: articles, categories, revisions, comments and likes."""
