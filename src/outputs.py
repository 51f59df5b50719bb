# Copyright Amazon.com Inc. or its affiliates.
# SPDX-License-Identifier: MIT-0

"""
Stack output helpers.

The key ARN of the artifact channel is looked up in the structured stack
outputs. When those are not available, it is scraped from the output text
that was written after the pipeline stack deployment:

    Outputs:
    CrossAccountPipelineStack.ArtifactBucketEncryptionKeyArn = arn:aws:kms:...

The value is the third whitespace-delimited token of the first line inside
the Outputs section that mentions KeyArn.
"""

from logger import configure_logger

LOGGER = configure_logger(__name__)
KEY_ARN_OUTPUT_SUFFIX = "KeyArn"
OUTPUTS_MARKER = "Outputs:"


def find_key_arn(outputs):
    """
    Returns the value of the first output whose key ends with KeyArn,
    or an empty string when there is none.
    """
    for key, value in (outputs or {}).items():
        if key.endswith(KEY_ARN_OUTPUT_SUFFIX) and value:
            return value
    return ""


def outputs_section(text):
    """
    Returns the lines from the Outputs: marker up to the next blank line.
    """
    section = []
    in_section = False
    for line in text.splitlines():
        if not in_section:
            if OUTPUTS_MARKER in line:
                in_section = True
                section.append(line)
            continue
        if not line.strip():
            break
        section.append(line)
    return section


def extract_key_arn(text):
    for line in outputs_section(text):
        if KEY_ARN_OUTPUT_SUFFIX not in line:
            continue
        tokens = line.split()
        return tokens[2] if len(tokens) > 2 else ""
    return ""


def render_outputs(stack_name, outputs):
    lines = [OUTPUTS_MARKER]
    lines.extend(
        f"{stack_name}.{key} = {value}"
        for key, value in sorted(outputs.items())
    )
    return "\n".join(lines) + "\n\n"


def write_outputs(path, stack_name, outputs):
    LOGGER.debug("Writing outputs of %s to %s", stack_name, path)
    with open(path, mode="a", encoding="utf-8") as output_file:
        output_file.write(render_outputs(stack_name, outputs))


def read_key_arn_from_file(path):
    try:
        with open(path, encoding="utf-8") as output_file:
            return extract_key_arn(output_file.read())
    except FileNotFoundError:
        LOGGER.warning("Output file %s does not exist", path)
        return ""
