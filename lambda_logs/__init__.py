"""
CloudWatch logging configuration for serverless function deployments.

This package resolves per-function log format, log levels and log group from
global and function-level settings, writes them into the compiled
CloudFormation template and re-applies them through the Lambda API after
deployment for functions the template patch cannot reach.
"""

__version__ = "0.1.0"
