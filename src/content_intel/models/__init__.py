from content_intel.models.article import Article, ArticleEntity
from content_intel.models.article_place_relation import ArticlePlaceRelation
from content_intel.models.base import Base
from content_intel.models.place import Place, PlaceName
from content_intel.models.place_mention import PlaceMention, ResolvedPlace
from content_intel.models.story_cluster import StoryCluster

__all__ = [
    "Article",
    "ArticleEntity",
    "ArticlePlaceRelation",
    "Base",
    "Place",
    "PlaceMention",
    "PlaceName",
    "ResolvedPlace",
    "StoryCluster",
]
