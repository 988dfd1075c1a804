#!/usr/bin/env python3
import aws_cdk as cdk

from records_cdk.records_cdk_stack import RecordsApiStack
from records_cdk.settings import BLOG_API, ITEMS_API, with_context_overrides

app = cdk.App()
RecordsApiStack(app, "BlogApiStack", settings=with_context_overrides(app, BLOG_API))
RecordsApiStack(app, "ItemsApiStack", settings=with_context_overrides(app, ITEMS_API))

app.synth()
