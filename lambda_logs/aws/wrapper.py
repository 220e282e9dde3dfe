import logging
from typing import Dict

import boto3
from botocore.exceptions import ClientError
from botocore.config import Config
from retry import retry

SESSION_RETRIES = 3
DEFAULT_REGION = 'us-east-1'

# Lambda rejects bursts of configuration updates; let botocore back off
LAMBDA_CLIENT_CONFIG = Config(retries={'max_attempts': 5, 'mode': 'standard'})


class AWSWrapper:
    """
    Lambda API access for post-deploy logging updates.

    Credentials come from explicit keys, an SSO profile, or the default
    boto3 chain when neither is given.
    """

    def __init__(self, aws_access_key_id: str = None, aws_secret_access_key: str = None,
                 aws_session_token: str = None, sso_profile_name: str = None,
                 region_name: str = DEFAULT_REGION):
        self._region_name = region_name
        self._session = self._create_session(aws_access_key_id, aws_secret_access_key,
                                             aws_session_token, sso_profile_name)
        self._lambda_client = None

    @retry(exceptions=ClientError, tries=SESSION_RETRIES, delay=3)
    def _create_session(self, aws_access_key_id: str = None, aws_secret_access_key: str = None,
                        aws_session_token: str = None, sso_profile_name: str = None):
        if sso_profile_name:
            logging.debug(f"Creating boto3 session for profile {sso_profile_name} in {self._region_name}")
            return boto3.session.Session(profile_name=sso_profile_name, region_name=self._region_name)

        logging.debug(f"Creating boto3 session in {self._region_name}")
        return boto3.session.Session(aws_access_key_id, aws_secret_access_key,
                                     aws_session_token, region_name=self._region_name)

    @property
    def lambda_client(self):
        """Lambda client, created on first use and reused for every function."""
        if self._lambda_client is None:
            self._lambda_client = self._create_lambda_client()
        return self._lambda_client

    @retry(exceptions=ClientError, tries=SESSION_RETRIES, delay=3)
    def _create_lambda_client(self):
        logging.debug(f"Creating lambda client in {self._region_name}")
        return self._session.client(service_name='lambda', config=LAMBDA_CLIENT_CONFIG)

    def update_function_logging_config(self, function_name: str, logging_config: Dict[str, str]):
        """
        Apply a LoggingConfig block to a deployed function.

        Args:
            function_name: Deployed function name
            logging_config: LogFormat, LogGroup and optional log levels

        Returns:
            dict: Lambda UpdateFunctionConfiguration response

        Raises:
            ClientError: If the Lambda API rejects the update
        """
        try:
            response = self.lambda_client.update_function_configuration(
                FunctionName=function_name,
                LoggingConfig=logging_config
            )
            logging.debug(f"Updated logging config of {function_name}: {logging_config}")
            return response
        except ClientError as e:
            logging.error(f"Error updating logging config of {function_name}: {e}")
            raise
