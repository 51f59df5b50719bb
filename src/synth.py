#!/usr/bin/env python3

# Copyright Amazon.com Inc. or its affiliates.
# SPDX-License-Identifier: MIT-0

"""
Synthesize the CloudFormation templates of the application stacks.

This is executed by the CDK_Synth action of the pipeline's Build stage. The
bootstrap tooling uses the same App to synthesize the repository and
pipeline stacks before it deploys them.

Usage:
    synth.py [-v... | --verbose...] [--outdir <directory>]

    synth.py -h | --help

    synth.py --version

Options:
    -h, --help  Show this help message.

    --outdir <directory>
                The directory to write the templates to [default: dist].

    -v, --verbose
                Show verbose logging information.
"""

import logging
import os
import tempfile

from aws_cdk import App, BootstraplessSynthesizer, Environment
from docopt import docopt

from cdk_stacks.application_stack import ApplicationStack
from cdk_stacks.pipeline_stack import PipelineStack
from cdk_stacks.repository_stack import RepositoryStack
from config import (
    APPLICATION_STAGES,
    PIPELINE_STACK_NAME,
    REPOSITORY_STACK_NAME,
    VERSION,
    application_stack_name,
)
from logger import configure_logger, set_log_level

LOGGER = configure_logger(__name__)


def build_app(config=None, outdir=None):
    """
    Builds the App holding the application stack of every stage. When a
    config is given, the repository and pipeline stacks are added as well.

    All stacks use the BootstraplessSynthesizer, so none of the accounts
    need to be bootstrapped with the CDK.
    """
    app = App(outdir=outdir) if outdir else App()
    application_stacks = {
        stage_name: ApplicationStack(
            app,
            application_stack_name(stage_name),
            stage_name=stage_name,
            synthesizer=BootstraplessSynthesizer(),
        )
        for stage_name in APPLICATION_STAGES
    }
    if config is None:
        return app

    tools_environment = Environment(
        account=config.tools_account_id,
        region=config.region,
    )
    RepositoryStack(
        app,
        REPOSITORY_STACK_NAME,
        repository_name=config.repository_name,
        env=tools_environment,
        synthesizer=BootstraplessSynthesizer(),
    )
    PipelineStack(
        app,
        PIPELINE_STACK_NAME,
        config=config,
        application_stacks=application_stacks,
        env=tools_environment,
        synthesizer=BootstraplessSynthesizer(),
    )
    return app


def synthesize_templates(config):
    """
    Returns the synthesized template of every stack, keyed by stack name.
    """
    with tempfile.TemporaryDirectory() as outdir:
        cloud_assembly = build_app(config, outdir=outdir).synth()
        return {
            stack.stack_name: stack.template
            for stack in cloud_assembly.stacks
        }


def write_application_templates(outdir):
    cloud_assembly = build_app(outdir=outdir).synth()
    template_paths = [
        os.path.join(outdir, stack.template_file)
        for stack in cloud_assembly.stacks
    ]
    for template_path in template_paths:
        LOGGER.info("Synthesized %s", template_path)
    return template_paths


def main():
    options = docopt(__doc__, version=VERSION, options_first=True)
    if options["--verbose"] > 0:
        set_log_level(logging.DEBUG, [__name__, "cdk_stacks.pipeline_stack"])
    LOGGER.debug("Input arguments: %s", options)
    write_application_templates(options["--outdir"])


if __name__ == "__main__":
    main()
