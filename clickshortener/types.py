from typing import Any


# API Gateway Lambda proxy integration
type LambdaEvent = dict[str, Any]
type LambdaContext = Any
type LambdaResponse = dict[str, Any]
type Headers = dict[str, str]
type QueryParameters = dict[str, str]

# Per-lambda section of the AppConfig document, keyed by backend ('redis', 'engine')
type LambdaConfiguration = dict[str, Any]
