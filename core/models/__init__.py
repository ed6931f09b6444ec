"""ORM models shared across applications."""

# モデルの循環インポートを避けるため、ここで一括インポート
from .user import UserRecord
from .wiki.models import WikiFileChunkRecord, WikiFileRecord, WikiPageRecord

__all__ = [
    'UserRecord',
    'WikiFileChunkRecord',
    'WikiFileRecord',
    'WikiPageRecord',
]
