import os
import unittest
from unittest import mock

from lambda_logs.manifest import FunctionEntry, ServiceManifest
from lambda_logs.plugin import ConfigureLambdaLogs


def example_manifest():
    return ServiceManifest(
        service='example-service',
        stage='dev',
        functions={
            'hello': FunctionEntry('hello', logs={'format': 'json', 'applicationLevel': 'DEBUG',
                                                  'systemLevel': 'DEBUG'}),
            'world': FunctionEntry('world', logs={'format': 'text'}),
            'custom': FunctionEntry('custom', logs={'logGroup': '/custom/log/group/path'}),
            'split': FunctionEntry('split'),
        },
        custom_logs={'format': 'json', 'applicationLevel': 'INFO', 'systemLevel': 'INFO'}
    )


def compiled_template():
    return {
        'Resources': {
            'HelloLambdaFunction': {'Type': 'AWS::Lambda::Function', 'Properties': {}},
            'WorldLambdaFunction': {'Type': 'AWS::Lambda::Function', 'Properties': {}},
            'CustomLambdaFunction': {'Type': 'AWS::Lambda::Function', 'Properties': {}},
            'splitNestedStack': {'Type': 'AWS::CloudFormation::Stack', 'Properties': {}},
        },
    }


class TestConfigureLambdaLogs(unittest.TestCase):
    """End-to-end tests of the lifecycle hooks."""

    def test_hooks_are_registered(self):
        plugin = ConfigureLambdaLogs(example_manifest(), aws_wrapper=mock.MagicMock())
        self.assertEqual(set(plugin.hooks), {
            'before:package:initialize',
            'before:deploy:function:packageFunction',
            'before:deploy:deploy',
            'after:package:finalize',
            'after:deploy:deploy',
            'after:deploy:function:deploy',
        })

    def test_full_deployment(self):
        manifest = example_manifest()
        aws_wrapper = mock.MagicMock()
        plugin = ConfigureLambdaLogs(manifest, options={}, aws_wrapper=aws_wrapper)

        plugin.run_hook('before:package:initialize')

        hello = manifest.functions['hello']
        self.assertEqual(tuple(hello.logging_config), ('json', 'DEBUG', 'DEBUG', None))
        self.assertEqual(hello.environment, {
            'AWS_LAMBDA_HANDLER_LOG_FORMAT': 'json',
            'LOG_LEVEL': 'DEBUG',
            'AWS_LAMBDA_LOG_LEVEL': 'DEBUG',
        })
        self.assertEqual(tuple(manifest.functions['world'].logging_config), ('text', 'INFO', 'INFO', None))
        self.assertEqual(manifest.functions['custom'].logging_config.log_group, '/custom/log/group/path')

        manifest.compiled_template = compiled_template()
        plugin.run_hook('after:package:finalize')

        resources = manifest.compiled_template['Resources']
        self.assertEqual(resources['WorldLambdaFunction']['Properties']['LoggingConfig'],
                         {'LogFormat': 'Text', 'LogGroup': '/aws/lambda/example-service-dev-world'})
        self.assertEqual(resources['splitNestedStack']['Properties'], {})
        self.assertIn('split', plugin.nested_stack_configs)

        results = plugin.run_hook('after:deploy:deploy')

        self.assertEqual(results, {'hello': True, 'world': True, 'custom': True, 'split': True})
        aws_wrapper.update_function_logging_config.assert_any_call('example-service-dev-split', {
            'LogFormat': 'JSON',
            'LogGroup': '/aws/lambda/example-service-dev-split',
            'ApplicationLogLevel': 'INFO',
            'SystemLogLevel': 'INFO',
        })

    def test_single_function_deployment(self):
        manifest = example_manifest()
        aws_wrapper = mock.MagicMock()
        plugin = ConfigureLambdaLogs(manifest, options={'function': 'world'}, aws_wrapper=aws_wrapper)

        plugin.run_hook('before:deploy:function:packageFunction')
        self.assertIsNone(manifest.functions['hello'].logging_config)

        self.assertEqual(plugin.run_hook('after:deploy:deploy'), {})
        aws_wrapper.update_function_logging_config.assert_not_called()

        self.assertTrue(plugin.run_hook('after:deploy:function:deploy'))
        aws_wrapper.update_function_logging_config.assert_called_once_with(
            'example-service-dev-world', {'LogFormat': 'Text', 'LogGroup': '/aws/lambda/example-service-dev-world'})

    def test_function_deploy_hook_without_selector(self):
        aws_wrapper = mock.MagicMock()
        plugin = ConfigureLambdaLogs(example_manifest(), options={}, aws_wrapper=aws_wrapper)
        self.assertIsNone(plugin.run_hook('after:deploy:function:deploy'))
        aws_wrapper.update_function_logging_config.assert_not_called()

    def test_stores_are_not_shared(self):
        """Two deployment operations in one process keep separate nested stack state."""
        first = ConfigureLambdaLogs(example_manifest(), aws_wrapper=mock.MagicMock())
        second = ConfigureLambdaLogs(example_manifest(), aws_wrapper=mock.MagicMock())

        first.configure_logs()
        first.manifest.compiled_template = compiled_template()
        first.attach_logging_config()

        self.assertIn('split', first.nested_stack_configs)
        self.assertNotIn('split', second.nested_stack_configs)

    def test_stage_option_overrides_manifest(self):
        manifest = example_manifest()
        ConfigureLambdaLogs(manifest, options={'stage': 'prod', 'region': 'eu-west-1'},
                            aws_wrapper=mock.MagicMock())
        self.assertEqual(manifest.stage, 'prod')
        self.assertEqual(manifest.region, 'eu-west-1')

    @mock.patch.dict(os.environ, {}, clear=True)
    @mock.patch('lambda_logs.plugin.AWSWrapper')
    def test_aws_wrapper_created_lazily(self, mock_wrapper_class):
        plugin = ConfigureLambdaLogs(example_manifest(), options={'aws-profile': 'deployer'})
        mock_wrapper_class.assert_not_called()

        plugin.configure_logs()
        plugin.update_logging_post_deploy()

        mock_wrapper_class.assert_called_once_with(sso_profile_name='deployer', region_name='us-east-1')

    @mock.patch('lambda_logs.plugin.AWSWrapper')
    def test_session_failure_does_not_raise(self, mock_wrapper_class):
        mock_wrapper_class.side_effect = Exception('The config profile (deployer) could not be found')
        plugin = ConfigureLambdaLogs(example_manifest(), options={'aws-profile': 'deployer'})

        with self.assertLogs('lambda_logs.plugin', level='ERROR'):
            self.assertEqual(plugin.update_logging_post_deploy(), {})

    @mock.patch.dict(os.environ, {'AWS_REGION': 'eu-west-1', 'STAGE': 'prod'}, clear=True)
    @mock.patch('lambda_logs.plugin.AWSWrapper')
    def test_environment_stage_and_region(self, mock_wrapper_class):
        """Stage and region from the environment apply when the manifest does not declare them."""
        manifest = ServiceManifest('svc', functions={'hello': FunctionEntry('hello')})
        plugin = ConfigureLambdaLogs(manifest)

        plugin.configure_logs()
        plugin.update_logging_post_deploy()

        self.assertEqual(manifest.stage, 'prod')
        self.assertEqual(manifest.region, 'eu-west-1')
        mock_wrapper_class.assert_called_once_with(sso_profile_name=None, region_name='eu-west-1')
        mock_wrapper_class.return_value.update_function_logging_config.assert_called_once_with(
            'svc-prod-hello', {'LogFormat': 'Text', 'LogGroup': '/aws/lambda/svc-prod-hello'})

    @mock.patch.dict(os.environ, {'AWS_REGION': 'eu-west-1', 'STAGE': 'prod'}, clear=True)
    @mock.patch('lambda_logs.plugin.AWSWrapper')
    def test_manifest_stage_and_region_win_over_environment(self, mock_wrapper_class):
        manifest = ServiceManifest('svc', stage='dev', region='ap-southeast-2',
                                   functions={'hello': FunctionEntry('hello')})
        plugin = ConfigureLambdaLogs(manifest)

        plugin.configure_logs()
        plugin.update_logging_post_deploy()

        self.assertEqual(manifest.stage, 'dev')
        mock_wrapper_class.assert_called_once_with(sso_profile_name=None, region_name='ap-southeast-2')

    def test_non_mapping_logs_block_does_not_abort(self):
        manifest = ServiceManifest('svc', stage='dev', functions={'hello': FunctionEntry('hello', logs='json')},
                                   custom_logs='json')
        plugin = ConfigureLambdaLogs(manifest, options={}, aws_wrapper=mock.MagicMock())

        with self.assertLogs('lambda_logs.config', level='WARNING'):
            configs = plugin.run_hook('before:package:initialize')

        self.assertEqual(tuple(configs['hello']), ('text', 'ERROR', 'WARN', None))

    def test_unknown_hook(self):
        plugin = ConfigureLambdaLogs(example_manifest(), aws_wrapper=mock.MagicMock())
        with self.assertRaises(KeyError):
            plugin.run_hook('after:remove:remove')


if __name__ == '__main__':
    unittest.main()
