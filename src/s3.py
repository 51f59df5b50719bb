# Copyright Amazon.com Inc. or its affiliates.
# SPDX-License-Identifier: MIT-0

"""
S3 module used to clean up the pipeline artifact bucket
"""

from botocore.config import Config
from botocore.exceptions import ClientError

from errors import ArtifactCleanupError
from logger import configure_logger
from paginator import paginator

LOGGER = configure_logger(__name__)
S3_CONFIG = Config(
    retries={
        "max_attempts": 10,
    },
)
# The DeleteObjects API accepts at most 1000 keys per call
DELETE_BATCH_SIZE = 1000


def chunks(list_to_chunk, number_to_chunk_into):
    """
    Split the list in segments of number_to_chunk_into.
    """
    number_per_chunk = max(1, number_to_chunk_into)
    return (
        list_to_chunk[item:item + number_per_chunk]
        for item in range(0, len(list_to_chunk), number_per_chunk)
    )


class S3:
    """
    Class used for modeling S3
    """

    def __init__(self, region, bucket, role):
        self.region = region
        self.client = role.client('s3', region_name=region, config=S3_CONFIG)
        self.bucket = bucket

    def bucket_exists(self):
        try:
            self.client.head_bucket(Bucket=self.bucket)
            return True
        except ClientError as error:
            if error.response["Error"]["Code"] in ("404", "NoSuchBucket"):
                return False
            raise

    def list_object_keys(self):
        return [
            s3_object['Key']
            for s3_object in paginator(
                self.client.list_objects_v2,
                Bucket=self.bucket,
            )
        ]

    def empty_bucket(self):
        """
        Deletes every object in the bucket, a bucket needs to be empty
        before CloudFormation is able to delete it.

        Returns:
            int: The number of objects that were deleted.

        Raises:
            ArtifactCleanupError: When one or more objects could not be
                deleted, after every batch was attempted.
        """
        if not self.bucket_exists():
            LOGGER.warning(
                "Bucket %s does not exist in %s, nothing to empty",
                self.bucket,
                self.region,
            )
            return 0

        keys = self.list_object_keys()
        failed_keys = []
        for batch in chunks(keys, DELETE_BATCH_SIZE):
            LOGGER.debug(
                "Deleting %d objects from bucket %s",
                len(batch),
                self.bucket,
            )
            response = self.client.delete_objects(
                Bucket=self.bucket,
                Delete={
                    'Objects': [{'Key': key} for key in batch],
                    'Quiet': True,
                },
            )
            for error in response.get('Errors', []):
                LOGGER.error(
                    "Failed to delete %s from bucket %s: %s",
                    error.get('Key'),
                    self.bucket,
                    error.get('Message'),
                )
                failed_keys.append(error.get('Key'))
        if failed_keys:
            raise ArtifactCleanupError(
                f"Failed to delete {len(failed_keys)} of {len(keys)} objects "
                f"from bucket {self.bucket}",
            )
        LOGGER.info("Deleted %d objects from bucket %s", len(keys), self.bucket)
        return len(keys)
