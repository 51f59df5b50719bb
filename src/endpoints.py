#!/usr/bin/env python3

# Copyright Amazon.com Inc. or its affiliates.
# SPDX-License-Identifier: MIT-0

"""
Print the API endpoints the pipeline deployed.

Usage:
    endpoints.py [-v... | --verbose...] [--config <path>] [--json]

    endpoints.py -h | --help

    endpoints.py --version

Options:
    -h, --help  Show this help message.

    --config <path>
                The pipeline configuration file. Defaults to the file set
                in the PIPELINE_CONFIG environment variable, if any.

    --json      Return the endpoints as a JSON object, keyed by stage.

    -v, --verbose
                Show verbose logging information.
"""

import json
import logging
import sys

from docopt import docopt

from cloudformation import CloudFormation
from config import Config, VERSION
from errors import Error
from logger import configure_logger

LOGGER = configure_logger(__name__)
ENDPOINT_OUTPUT_MARKER = "Endpoint"


def fetch_endpoints(config):
    """
    Returns the endpoint URL of every stage that has been deployed, keyed
    by stage name. Stages that were not deployed yet are left out.
    """
    endpoints = {}
    for environment in config.environments:
        outputs = CloudFormation(
            region=config.region,
            role=config.session(environment.profile),
            stack_name=environment.deployment_stack_name,
            account_id=environment.account_id,
        ).get_stack_outputs()
        urls = [
            value
            for key, value in sorted(outputs.items())
            if ENDPOINT_OUTPUT_MARKER in key
        ]
        if not urls:
            LOGGER.warning(
                "%s has no endpoint output, did the pipeline deploy %s yet?",
                environment.deployment_stack_name,
                environment.stage,
            )
            continue
        endpoints[environment.name] = urls[0]
    return endpoints


def main():
    options = docopt(__doc__, version=VERSION, options_first=True)
    if options["--verbose"] > 0:
        LOGGER.setLevel(logging.DEBUG)

    LOGGER.debug("Input arguments: %s", options)

    try:
        endpoints = fetch_endpoints(Config(options["--config"]))
    except Error as error:
        LOGGER.error("Could not look up the endpoints: %s", error)
        sys.exit(1)

    if not endpoints:
        LOGGER.error("None of the stages has been deployed yet.")
        sys.exit(2)

    if options["--json"]:
        print(json.dumps(endpoints))
    else:
        for stage_name, url in endpoints.items():
            print(f"{stage_name}: {url}")


if __name__ == "__main__":
    main()
