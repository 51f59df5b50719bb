# Copyright Amazon.com Inc. or its affiliates.
# SPDX-License-Identifier: MIT-0

"""Construct related to the encrypted artifact channel between the tools
account and the downstream accounts
"""

from aws_cdk import (
    aws_iam as _iam,
    aws_kms as _kms,
    aws_s3 as _s3,
    RemovalPolicy,
)
from constructs import Construct

from logger import configure_logger

LOGGER = configure_logger(__name__)
ARTIFACT_KEY_ALIAS = "key/pipeline-artifact-key"


class ArtifactChannel(Construct):
    def __init__(
        self,
        scope: Construct,
        id: str,  # pylint: disable=W0622
        bucket_name: str,
        downstream_account_ids: list,
        cross_account_roles: list,
        **kwargs,
    ):
        super().__init__(scope, id, **kwargs)
        account_principals = [
            _iam.AccountPrincipal(account_id)
            for account_id in downstream_account_ids
        ]

        self.key = _kms.Key(
            self,
            'ArtifactKey',
            alias=ARTIFACT_KEY_ALIAS,
        )
        # The cross-account roles need to exist before this key policy
        # can reference them
        for grantee in account_principals + list(cross_account_roles):
            self.key.grant_decrypt(grantee)

        self.bucket = _s3.Bucket(
            self,
            'ArtifactBucket',
            bucket_name=bucket_name,
            removal_policy=RemovalPolicy.DESTROY,
            encryption=_s3.BucketEncryption.KMS,
            encryption_key=self.key,
        )
        for principal in account_principals:
            self.bucket.grant_put(principal)
            self.bucket.grant_read(principal)
        LOGGER.debug(
            "Artifact channel %s shared with %s",
            bucket_name,
            ", ".join(downstream_account_ids),
        )
