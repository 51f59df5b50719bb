# Copyright Amazon.com Inc. or its affiliates.
# SPDX-License-Identifier: MIT-0

"""
A collection of all Error Types used by the pipeline bootstrap tooling
"""


class Error(Exception):
    """Base class for exceptions in this module."""

    pass


class InvalidConfigError(Error):
    """
    Used for invalid configuration(s) within the pipeline configuration file
    or the environment variables
    """


class MissingAccountIdError(InvalidConfigError):
    """
    Raised when one of the tools, UAT or Prod account ids is not set.
    Nothing is deployed when this error is raised.
    """


class StackDeploymentError(Error):
    """
    CloudFormation reported that a stack or change set could not be created,
    updated or deleted
    """

    pass


class KeyArnNotFoundError(Error):
    """
    Raised when the pipeline stack deployment succeeded, but it did not
    publish the artifact encryption key ARN as an output
    """

    pass


class SourcePushError(Error):
    """
    Raised when committing or pushing the initial source to the
    CodeCommit repository failed
    """

    pass


class TemplateSynthesisError(Error):
    """
    Raised when the CDK app could not be synthesized into the repository
    and pipeline templates
    """

    pass


class ArtifactCleanupError(Error):
    """
    Raised when objects could not be deleted from the artifact bucket
    """

    pass
