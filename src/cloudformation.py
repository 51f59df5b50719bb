# Copyright Amazon.com Inc. or its affiliates.
# SPDX-License-Identifier: MIT-0

"""CloudFormation module used by the bootstrap and teardown tooling.

Stacks are always deployed through change sets, which gives create-or-update
semantics: deploying an unchanged template with unchanged parameters is a
no-op instead of an error.
"""

import random

from botocore.exceptions import WaiterError, ClientError
from botocore.config import Config
import tenacity

from errors import StackDeploymentError
from logger import configure_logger

LOGGER = configure_logger(__name__)
CFN_CONFIG = Config(
    retries=dict(
        max_attempts=10
    )
)
CFN_CAPABILITIES = [
    "CAPABILITY_NAMED_IAM",
    "CAPABILITY_AUTO_EXPAND",
]
CFN_TAGS = [{
    'Key': 'createdBy',
    'Value': 'CrossAccountPipelineBootstrap'
}]


class StackProperties:
    clean_before_create_update_states = [
        'CREATE_FAILED',
        'ROLLBACK_FAILED',
        'ROLLBACK_COMPLETE',
        'DELETE_FAILED',
        'REVIEW_IN_PROGRESS',
    ]
    in_progress_state_waiters = {
        'UPDATE_IN_PROGRESS': 'stack_update_complete',
        'CREATE_IN_PROGRESS': 'stack_create_complete',
        'UPDATE_ROLLBACK_IN_PROGRESS': 'stack_rollback_complete',
        'UPDATE_ROLLBACK_COMPLETE_CLEANUP_IN_PROGRESS': (
            'stack_rollback_complete'
        ),
        'DELETE_IN_PROGRESS': 'stack_delete_complete',
        'REVIEW_IN_PROGRESS': 'change_set_create_complete',
    }


class WaitException(Exception):
    pass


class CloudFormation(StackProperties):
    def __init__(
            self,
            region,
            role,
            stack_name,
            template_body=None,
            local_template_path=None,
            parameters=None,
            wait=False,
            account_id=None,  # Used for logging visibility
    ):
        self.client = role.client(
            'cloudformation',
            region_name=region,
            config=CFN_CONFIG,
        )
        self.region = region
        self.stack_name = stack_name
        self.template_body = template_body
        self.local_template_path = local_template_path
        self.parameters = parameters or []
        self.wait = wait
        self.account_id = account_id

    def validate_template(self, template_body):
        try:
            return self.client.validate_template(TemplateBody=template_body)
        except ClientError as error:
            LOGGER.error(
                "%s in %s - Template validation of %s failed",
                self.account_id,
                self.region,
                self.stack_name,
            )
            raise StackDeploymentError(
                f"{self.stack_name}: invalid template: {error}",
            ) from error

    def _get_template_body(self):
        if self.template_body is not None:
            return self.template_body
        try:
            with open(self.local_template_path, mode='r', encoding='utf-8') as template_file:
                return template_file.read()
        except OSError as error:
            raise StackDeploymentError(
                f"{self.stack_name}: unable to read template "
                f"{self.local_template_path}: {error}",
            ) from error

    def _wait_if_in_progress(self):
        status = self.get_stack_status()
        if status not in StackProperties.in_progress_state_waiters:
            return

        waiter_type = StackProperties.in_progress_state_waiters[status]
        if 'change_set' in waiter_type:
            self._wait_change_set()
            return

        self._wait_stack(waiter_type, self.stack_name)

    def _wait_stack(self, waiter_type, stack_name):
        try:
            waiter = self.client.get_waiter(waiter_type)
            LOGGER.info(
                '%s in %s - Waiting for CloudFormation stack: %s to reach %s',
                self.account_id,
                self.region,
                stack_name,
                waiter_type,
            )
            waiter.wait(
                StackName=stack_name,
                WaiterConfig={
                    'Delay': CloudFormation._random_delay(),
                    'MaxAttempts': 45
                }
            )
        except ClientError as client_error:
            LOGGER.error(
                "%s in %s - Failed to wait for stack %s error %s",
                self.account_id,
                self.region,
                stack_name,
                client_error,
            )
            raise

    def _wait_change_set(self):
        try:
            waiter = self.client.get_waiter('change_set_create_complete')

            LOGGER.debug(
                '%s in %s - Waiting for CloudFormation Change Set to '
                'complete creation: %s',
                self.account_id,
                self.region,
                self.stack_name,
            )

            waiter.wait(
                StackName=self.stack_name,
                ChangeSetName=self.stack_name,
                WaiterConfig={
                    'Delay': CloudFormation._random_delay(),
                    'MaxAttempts': 20
                }
            )
        except ClientError as client_error:
            LOGGER.error(
                "%s in %s - Failed to wait for change set of %s error %s",
                self.account_id,
                self.region,
                self.stack_name,
                client_error,
            )
            raise

    def _get_waiter_type(self):
        if self._get_change_set_type() == 'UPDATE':
            return 'stack_update_complete'
        return 'stack_create_complete'

    def _get_change_set_type(self):
        status = self.get_stack_status()
        if (
            # Stack does not exists, needs to be created:
            status is None
            # Or stack needs to be recreated:
            or status in StackProperties.clean_before_create_update_states
        ):
            return 'CREATE'
        return 'UPDATE'

    def _describe_change_set(self):
        try:
            return self.client.describe_change_set(
                ChangeSetName=self.stack_name,
                StackName=self.stack_name
            )
        except ClientError:
            return False

    def _clean_up_when_required(self):
        stack_status = self.get_stack_status()
        if not stack_status:
            # No stack found, we can continue as planned
            return

        if stack_status in StackProperties.clean_before_create_update_states:
            LOGGER.info(
                '%s in %s - CloudFormation Stack %s is in %s, which requires '
                'clean up before we can modify it. Deleting stack...',
                self.account_id,
                self.region,
                self.stack_name,
                stack_status,
            )
            self.delete_stack(stack_name=self.stack_name, wait_override=True)
            # If we deleted the stack, there is no need to delete change sets
            return

        change_set_state = self._describe_change_set()
        if change_set_state:
            LOGGER.info(
                '%s in %s - CloudFormation Change set on %s named %s already '
                'exists, deleting change set...',
                self.account_id,
                self.region,
                self.stack_name,
                self.stack_name,
            )
            self._delete_change_set()
            self._wait_until_change_set_is_deleted()

    @tenacity.retry(
        retry=tenacity.retry_if_exception_type(WaitException),
        stop=tenacity.stop_after_attempt(20),
        wait=tenacity.wait_random_exponential(),
    )
    def _wait_until_change_set_is_deleted(self):
        change_set_state = self._describe_change_set()
        if change_set_state:
            # We still found a change set, throwing exception
            # so we can retry until it is no longer present
            raise WaitException()

    def _with_previous_values(self, parameters, template_parameters):
        """
        Parameters that the stack already has, but that are not passed in
        this time, keep their current value instead of falling back to the
        template default.
        """
        given_keys = {param['ParameterKey'] for param in parameters}
        return parameters + [
            {
                'ParameterKey': key,
                'UsePreviousValue': True,
            }
            for key in self._get_stack_parameter_keys()
            if key not in given_keys and key in template_parameters
        ]

    def _create_change_set(self):
        """
        Creates a CloudFormation change set from a template
        """
        LOGGER.debug(
            "%s in %s - CloudFormation calling _create_change_set for %s",
            self.account_id,
            self.region,
            self.stack_name,
        )
        try:
            template_body = self._get_template_body()
            template_parameters = [
                param['ParameterKey']
                for param in self.validate_template(template_body).get('Parameters', [])
            ]
            change_set_type = self._get_change_set_type()
            parameters = (
                self._with_previous_values(self.parameters, template_parameters)
                if change_set_type == 'UPDATE'
                else self.parameters
            )
            change_set_params = {
                "StackName": self.stack_name,
                "TemplateBody": template_body,
                "Parameters": parameters,
                "Capabilities": CFN_CAPABILITIES,
                "Tags": CFN_TAGS,
                "ChangeSetName": self.stack_name,
                "ChangeSetType": change_set_type,
            }
            self._clean_up_when_required()
            self.client.create_change_set(**change_set_params)
            self._wait_change_set()
            return True
        except ClientError as error:
            LOGGER.error(
                "%s in %s - Failed to create the change set for %s",
                self.account_id,
                self.region,
                self.stack_name,
                exc_info=1,
            )
            self._delete_change_set()
            raise StackDeploymentError(
                f"{self.stack_name}: {error}",
            ) from error
        except WaiterError as error:
            err = error.last_response
            if CloudFormation._change_set_failed_due_to_empty(
                err.get("Status"),
                err.get("StatusReason", ""),
            ):
                LOGGER.info(
                    "%s in %s - CloudFormation ChangeSet %s does not contain "
                    "changes",
                    self.account_id,
                    self.region,
                    self.stack_name,
                )
                self._delete_change_set()
                return False

            LOGGER.error(
                "%s in %s - CloudFormation stack %s create change set error: "
                "%s",
                self.account_id,
                self.region,
                self.stack_name,
                err.get("StatusReason"),
                exc_info=1,
            )
            self._delete_change_set()
            raise

    @staticmethod
    def _change_set_failed_due_to_empty(status, reason):
        return (
            status == "FAILED"
            and (
                "The submitted information didn't contain changes." in reason
                or "No updates are to be performed" in reason
            )
        )

    def _delete_change_set(self):
        try:
            self.client.delete_change_set(
                ChangeSetName=self.stack_name,
                StackName=self.stack_name
            )
        except ClientError as client_error:
            LOGGER.info(
                '%s in %s | CloudFormation stack %s delete change set error: '
                '%s',
                self.account_id,
                self.region,
                self.stack_name,
                client_error,
            )

    def _execute_change_set(self, waiter):
        LOGGER.info(
            '%s in %s - Executing CloudFormation Change Set with name: %s',
            self.account_id,
            self.region,
            self.stack_name,
        )

        self.client.execute_change_set(
            ChangeSetName=self.stack_name,
            StackName=self.stack_name,
        )
        if self.wait:
            self._wait_stack(waiter, self.stack_name)

    def create_stack(self):
        """
        Creates the stack, or updates it when it exists already.

        Returns True when changes were applied, False when the stack was
        already up to date.
        """
        try:
            self._wait_if_in_progress()
            waiter = self._get_waiter_type()
            create_change_set = self._create_change_set()
            if create_change_set:
                self._execute_change_set(waiter)
            return create_change_set
        except WaiterError as waiter_error:
            LOGGER.error(
                '%s in %s | CloudFormation stack %s did not reach a '
                'successful state: %s',
                self.account_id,
                self.region,
                self.stack_name,
                waiter_error,
            )
            raise StackDeploymentError(
                f"{self.stack_name}: {waiter_error}",
            ) from waiter_error
        except ClientError as client_error:
            LOGGER.error(
                '%s in %s | CloudFormation stack %s create_stack error: '
                '%s',
                self.account_id,
                self.region,
                self.stack_name,
                client_error,
            )
            raise StackDeploymentError(
                f"{self.stack_name}: {client_error}",
            ) from client_error

    def _describe_stack(self, stack_name=None):
        try:
            response = self.client.describe_stacks(
                StackName=stack_name or self.stack_name
            )
        except ClientError as error:
            if 'does not exist' in str(error):
                LOGGER.debug(
                    "%s in %s - Stack %s does not exist",
                    self.account_id,
                    self.region,
                    stack_name or self.stack_name,
                )
                return None  # Return None if the stack does not exist
            raise StackDeploymentError(
                f"{stack_name or self.stack_name}: unable to describe the "
                f"stack: {error}",
            ) from error
        stacks = response.get('Stacks', [])
        return stacks[0] if stacks else None

    def _get_stack_parameter_keys(self):
        stack = self._describe_stack() or {}
        return [
            param['ParameterKey']
            for param in stack.get('Parameters', [])
        ]

    def get_stack_outputs(self):
        """
        Returns the stack outputs as a dictionary of output key to value.
        """
        stack = self._describe_stack() or {}
        return {
            item['OutputKey']: item['OutputValue']
            for item in stack.get('Outputs', [])
        }

    def get_stack_output(self, value):
        LOGGER.debug("Retrieving value: %s", value)
        output = self.get_stack_outputs().get(value)
        if output is None:
            LOGGER.warning(
                "%s in %s - Attempted to get stack output %s from %s "
                "but it was not found.",
                self.account_id,
                self.region,
                value,
                self.stack_name,
            )
        return output

    def get_stack_status(self):
        stack = self._describe_stack()
        return stack['StackStatus'] if stack else None

    def delete_stack(self, stack_name=None, wait_override=False):
        stack_name = stack_name or self.stack_name
        try:
            LOGGER.info(
                '%s in %s - Deleting stack: %s',
                self.account_id,
                self.region,
                stack_name,
            )
            self.client.delete_stack(
                StackName=stack_name,
            )
            if self.wait or wait_override:
                self._wait_stack('stack_delete_complete', stack_name)
        except (ClientError, WaiterError) as error:
            LOGGER.error(
                "%s in %s - Failed to delete stack %s error %s",
                self.account_id,
                self.region,
                stack_name,
                error,
            )
            raise StackDeploymentError(
                f"{stack_name}: {error}",
            ) from error

    @staticmethod
    def _random_delay():
        return random.randint(11, 49)
