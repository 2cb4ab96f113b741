#import wszystkich modeli zeby SQLAlchemy je zarejestrowal w base metadata

from app.data.models.partition import PartitionModel

__all__ = ["PartitionModel"]
