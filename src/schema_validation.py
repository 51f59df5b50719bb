# Copyright Amazon.com Inc. or its affiliates.
# SPDX-License-Identifier: MIT-0

"""
Schema Validation for the pipeline configuration file
"""

from schema import Schema, And, Use, Or, Optional, SchemaError

from errors import InvalidConfigError
from logger import configure_logger

LOGGER = configure_logger(__name__)

ACCOUNT_ID_SCHEMA = And(
    Or(int, str),
    Use(str),
    Use(str.strip),
    len,
    error=(
        "The specified account id is empty. When an account id starts "
        "with a zero, please wrap it in quotes to make it a string."
    ),
)

ACCOUNTS_SCHEMA = {
    Optional("tools"): ACCOUNT_ID_SCHEMA,
    Optional("uat"): ACCOUNT_ID_SCHEMA,
    Optional("prod"): ACCOUNT_ID_SCHEMA,
}

PROFILES_SCHEMA = {
    Optional("pipeline"): str,
    Optional("uat"): str,
    Optional("prod"): str,
}

CONFIG_SCHEMA = Schema({
    Optional("accounts", default={}): ACCOUNTS_SCHEMA,
    Optional("region"): And(str, len),
    Optional("profiles", default={}): PROFILES_SCHEMA,
    Optional("branch"): And(str, len),
    Optional("admin-permissions"): bool,
    Optional("templates-path"): And(str, len),
    Optional("output-file"): And(str, len),
})


class SchemaValidation:
    def __init__(self, config_contents: dict):
        try:
            self.validated = CONFIG_SCHEMA.validate(config_contents or {})
        except SchemaError as error:
            LOGGER.error("Pipeline configuration is invalid: %s", error)
            raise InvalidConfigError(str(error)) from error
