# Copyright Amazon.com Inc. or its affiliates.
# SPDX-License-Identifier: MIT-0

# pylint: skip-file

from pytest import raises

from errors import InvalidConfigError
from schema_validation import SchemaValidation


def test_empty_config_is_valid():
    assert SchemaValidation(None).validated == {
        "accounts": {},
        "profiles": {},
    }


def test_account_ids_become_strings():
    validated = SchemaValidation({
        "accounts": {"tools": 111111111111, "uat": " 222 "},
    }).validated
    assert validated["accounts"] == {"tools": "111111111111", "uat": "222"}


def test_empty_account_id_is_invalid():
    with raises(InvalidConfigError):
        SchemaValidation({"accounts": {"tools": ""}})


def test_unknown_account_is_invalid():
    with raises(InvalidConfigError):
        SchemaValidation({"accounts": {"dev": "444"}})


def test_unknown_profile_is_invalid():
    with raises(InvalidConfigError):
        SchemaValidation({"profiles": {"dev": "dev"}})


def test_full_config():
    validated = SchemaValidation({
        "accounts": {"tools": "111", "uat": "222", "prod": "333"},
        "region": "eu-west-1",
        "profiles": {"pipeline": "tools"},
        "branch": "main",
        "admin-permissions": False,
        "templates-path": "cfn",
        "output-file": ".out",
    }).validated
    assert validated["admin-permissions"] is False
    assert validated["profiles"] == {"pipeline": "tools"}
    assert validated["templates-path"] == "cfn"


def test_empty_branch_is_invalid():
    with raises(InvalidConfigError):
        SchemaValidation({"branch": ""})
