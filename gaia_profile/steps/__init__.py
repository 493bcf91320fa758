from .step_10_resolve_preferences import ResolvePreferencesStep
from .step_20_merge_settings import MergeSettingsStep
from .step_30_select_branding import SelectBrandingStep
from .step_40_package_webapps import PackageWebappsStep
from .step_50_install_extensions import InstallExtensionsStep
from .step_60_write_profile import WriteProfileStep

__all__ = [
    "ResolvePreferencesStep",
    "MergeSettingsStep",
    "SelectBrandingStep",
    "PackageWebappsStep",
    "InstallExtensionsStep",
    "WriteProfileStep",
]
