# Copyright Amazon.com Inc. or its affiliates.
# SPDX-License-Identifier: MIT-0

"""The CodeCommit repository the pipeline sources from
"""

from aws_cdk import (
    aws_codecommit as _codecommit,
    CfnOutput,
    Stack,
)
from constructs import Construct


class RepositoryStack(Stack):
    def __init__(self, scope: Construct, id: str, repository_name: str, **kwargs) -> None:  # pylint: disable=W0622
        super().__init__(scope, id, **kwargs)
        self.repository = _codecommit.Repository(
            self,
            'Repository',
            repository_name=repository_name,
            description='Source of the cross-account pipeline',
        )
        CfnOutput(
            self,
            'RepositoryCloneUrlHttp',
            value=self.repository.repository_clone_url_http,
        )
