"""
AWS gateways.

Submodules:
  storage  — S3 object download (boto3)
  queue    — SQS new-item fan-out (boto3)

Both raise ``TransportError`` on any AWS failure and accept an injected
client so tests never touch the network.
"""
