from .Publisher import Publisher
from .S3Publisher import S3Publisher
from .StreamPublisher import StreamPublisher

__all__ = ["Publisher", "S3Publisher", "StreamPublisher"]
