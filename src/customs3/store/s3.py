"""S3-backed remote bucket store."""

from datetime import datetime
from typing import Dict, List, Tuple
from botocore.exceptions import ClientError

from .base import RemoteStore
from ..utils.logging import get_logger

logger = get_logger(__name__)

# Error codes head_bucket uses for a missing bucket
MISSING_BUCKET_CODES = ('404', 'NoSuchBucket', 'NotFound')


class S3BucketStore(RemoteStore):
    """RemoteStore implementation over a boto3 S3 client."""

    def __init__(self, s3_client, region: str):
        """Initialize S3 bucket store.

        Args:
            s3_client: Configured boto3 S3 client
            region: Region new buckets are created in
        """
        self.s3_client = s3_client
        self.region = region

    @classmethod
    def from_client_manager(cls, client_manager) -> "S3BucketStore":
        """Build a store from an AWSClientManager."""
        return cls(client_manager.get_client('s3'), client_manager.get_region())

    def create(self, name: str) -> None:
        create_params = {'Bucket': name}

        # Add location constraint for non-us-east-1 regions
        if self.region != 'us-east-1':
            create_params['CreateBucketConfiguration'] = {
                'LocationConstraint': self.region
            }

        self.s3_client.create_bucket(**create_params)
        logger.info(f"Bucket {name} created")

    def exists(self, name: str) -> bool:
        try:
            self.s3_client.head_bucket(Bucket=name)
            return True
        except ClientError as e:
            if e.response['Error']['Code'] in MISSING_BUCKET_CODES:
                return False
            raise

    def tag(self, name: str, tags: Dict[str, str]) -> None:
        # S3 rejects an empty TagSet
        if not tags:
            self.s3_client.delete_bucket_tagging(Bucket=name)
            logger.debug(f"Cleared tags on bucket {name}")
            return

        self.s3_client.put_bucket_tagging(
            Bucket=name,
            Tagging={
                'TagSet': [
                    {'Key': k, 'Value': v} for k, v in tags.items()
                ]
            }
        )
        logger.debug(f"Wrote {len(tags)} tag(s) to bucket {name}")

    def delete(self, name: str) -> None:
        self.s3_client.delete_bucket(Bucket=name)
        logger.info(f"Bucket {name} deleted")

    def list(self) -> List[Tuple[str, datetime]]:
        response = self.s3_client.list_buckets()
        return [
            (bucket['Name'], bucket['CreationDate'])
            for bucket in response.get('Buckets', [])
        ]
