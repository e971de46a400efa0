"""Program package: deferred declaration of resources, modules and handlers."""

from stacklayer.program.app import App, Program, RunContext, create_app
from stacklayer.program.config_proxy import ConfigProxy, ConfigSetter, resolve_config
from stacklayer.program.export import export_outputs, settle_outputs
from stacklayer.program.inputs import AppInput, get_app_input
from stacklayer.program.module import AppModuleDefinition, app_module, create_app_module
from stacklayer.program.output import Output, unwrap
from stacklayer.program.resource import AppResource, ResourceObserver
from stacklayer.program.tags import default_tags, settings_tag_policy, tag_resources

__all__ = [
    "App",
    "AppInput",
    "AppModuleDefinition",
    "AppResource",
    "ConfigProxy",
    "ConfigSetter",
    "Output",
    "Program",
    "ResourceObserver",
    "RunContext",
    "app_module",
    "create_app",
    "create_app_module",
    "default_tags",
    "export_outputs",
    "get_app_input",
    "resolve_config",
    "settings_tag_policy",
    "settle_outputs",
    "tag_resources",
    "unwrap",
]
