import json

from aws_cdk import (
    Duration,
    Stack,
    RemovalPolicy,
    aws_apigateway as apigw,
    aws_cognito as cognito,
    aws_dynamodb as dynamodb,
    aws_iam as iam,
    aws_lambda as _lambda,
    aws_logs as logs,
)
from constructs import Construct

from records_cdk.settings import RecordsApiSettings

VERIFICATION_MESSAGE = "Thanks for signing up to our awesome app! Your verification code is {####}"


class RecordsApiStack(Stack):

    def __init__(self, scope: Construct, construct_id: str, *, settings: RecordsApiSettings, **kwargs) -> None:
        super().__init__(scope, construct_id, **kwargs)

        self.settings = settings

        # 1. DynamoDB: un registro por id
        table = dynamodb.Table(
            self, "RecordsTable",
            partition_key=dynamodb.Attribute(
                name="id",
                type=dynamodb.AttributeType.STRING
            ),
            billing_mode=dynamodb.BillingMode.PAY_PER_REQUEST,
            table_name=settings.table_name,
            removal_policy=RemovalPolicy.DESTROY
        )

        # 2. Cognito: solo si las rutas requieren autenticación
        authorizer = None
        if settings.require_auth:
            user_pool = self._create_user_pool(settings)
            authorizer = apigw.CognitoUserPoolsAuthorizer(
                self, "RecordsAuthorizer",
                cognito_user_pools=[user_pool]
            )

        # 3. Rol de la Lambda: lectura/escritura en la tabla y logs
        role = iam.Role(
            self, "RecordsHandlerRole",
            assumed_by=iam.ServicePrincipal("lambda.amazonaws.com")
        )
        role.add_to_policy(iam.PolicyStatement(
            resources=[table.table_arn],
            actions=[
                "dynamodb:BatchGetItem",
                "dynamodb:GetItem",
                "dynamodb:Query",
                "dynamodb:Scan",
                "dynamodb:BatchWriteItem",
                "dynamodb:PutItem",
                "dynamodb:UpdateItem",
                "dynamodb:DeleteItem",
            ]
        ))
        role.add_to_policy(iam.PolicyStatement(
            resources=["*"],
            actions=[
                "logs:CreateLogStream",
                "logs:PutLogEvents",
                "logs:CreateLogGroup",
            ]
        ))

        # 4. Lambda: el dispatcher CRUD
        handler = _lambda.Function(
            self, "RecordsHandler",
            runtime=_lambda.Runtime.PYTHON_3_12,
            code=_lambda.Code.from_asset("lambda"),
            handler="handler.main",
            function_name=settings.function_name,
            role=role,
            environment=settings.lambda_environment(table.table_name)
        )

        # 5. API Gateway con access logs en CloudWatch
        log_group = logs.LogGroup(self, "ApiAccessLogs")

        api = apigw.RestApi(
            self, "RecordsApi",
            rest_api_name=settings.api_name,
            description=settings.description,
            deploy_options=apigw.StageOptions(
                stage_name=settings.stage_name,
                access_log_destination=apigw.LogGroupLogDestination(log_group),
                access_log_format=apigw.AccessLogFormat.custom(json.dumps({
                    "requestId": apigw.AccessLogField.context_request_id(),
                    "sourceIp": apigw.AccessLogField.context_identity_source_ip(),
                    "extendedRequestId": apigw.AccessLogField.context_extended_request_id(),
                    "caller": apigw.AccessLogField.context_identity_caller(),
                    "user": apigw.AccessLogField.context_identity_user(),
                    "requestTime": apigw.AccessLogField.context_request_time(),
                    "httpMethod": apigw.AccessLogField.context_http_method(),
                    "resourcePath": apigw.AccessLogField.context_resource_path(),
                    "status": apigw.AccessLogField.context_status(),
                    "protocol": apigw.AccessLogField.context_protocol(),
                    "responseLength": apigw.AccessLogField.context_response_length(),
                    "userAgent": apigw.AccessLogField.context_identity_user_agent(),
                    "apiId": apigw.AccessLogField.context_api_id(),
                })),
                logging_level=apigw.MethodLoggingLevel.INFO,
                metrics_enabled=True
            ),
            default_cors_preflight_options=apigw.CorsOptions(
                allow_headers=[
                    "Content-Type",
                    "X-Amz-Date",
                    "Authorization",
                    "X-Api-Key",
                ],
                allow_methods=["OPTIONS", "GET", "PUT", "DELETE"],
                allow_credentials=settings.allow_credentials,
                allow_origins=[settings.allowed_origin]
            )
        )

        # 6. Rutas: /<coleccion> (GET, PUT) y /<coleccion>/{id} (GET, DELETE)
        integration = apigw.LambdaIntegration(handler)
        method_options = {}
        if authorizer is not None:
            method_options = {
                "authorizer": authorizer,
                "authorization_type": apigw.AuthorizationType.COGNITO,
            }

        collection = api.root.add_resource(settings.collection)
        collection.add_method("GET", integration, **method_options)
        collection.add_method("PUT", integration, **method_options)

        record = collection.add_resource("{id}")
        record.add_method("GET", integration, **method_options)
        record.add_method("DELETE", integration, **method_options)

        self.table = table
        self.handler = handler
        self.api = api

    def _create_user_pool(self, settings: RecordsApiSettings) -> cognito.UserPool:
        user_pool = cognito.UserPool(
            self, "RecordsUserPool",
            user_pool_name=f"{settings.api_name}-users",
            sign_in_case_sensitive=False,
            removal_policy=RemovalPolicy.DESTROY,
            self_sign_up_enabled=True,
            user_verification=cognito.UserVerificationConfig(
                email_subject="Verify your email for our awesome app!",
                email_body=VERIFICATION_MESSAGE,
                email_style=cognito.VerificationEmailStyle.CODE,
                sms_message=VERIFICATION_MESSAGE
            ),
            sign_in_aliases=cognito.SignInAliases(username=True, email=True),
            standard_attributes=cognito.StandardAttributes(
                email=cognito.StandardAttribute(required=True, mutable=True)
            ),
            custom_attributes={
                "joinedOn": cognito.DateTimeAttribute(),
            },
            password_policy=cognito.PasswordPolicy(
                min_length=12,
                require_lowercase=True,
                require_uppercase=True,
                require_digits=True,
                require_symbols=True,
                temp_password_validity=Duration.days(3)
            ),
            account_recovery=cognito.AccountRecovery.EMAIL_ONLY
        )

        user_pool.add_client(
            "RecordsAppClient",
            supported_identity_providers=[
                cognito.UserPoolClientIdentityProvider.COGNITO
            ],
            o_auth=cognito.OAuthSettings(
                flows=cognito.OAuthFlows(authorization_code_grant=True),
                scopes=[cognito.OAuthScope.OPENID],
                callback_urls=[settings.callback_url],
                logout_urls=[settings.callback_url]
            ),
            prevent_user_existence_errors=True
        )
        return user_pool
