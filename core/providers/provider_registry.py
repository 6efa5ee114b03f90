import importlib
import logging
import pkgutil
from typing import Any, List

from core.providers.service_provider import ServiceProvider


class ProviderRegistry:
    """
    Discovers application providers.

    Every non-private module of the providers package that exposes a
    ``provider`` attribute (a ServiceProvider subclass) contributes one
    provider. Modules that fail to import are logged and skipped.
    """

    def __init__(self, provider_directory: str = "app.providers"):
        self.provider_directory = provider_directory
        self.logger = logging.getLogger("Herald.ProviderRegistry")

    def discover(self, app: Any) -> List[ServiceProvider]:
        """
        Instantiate every discovered provider for the application.

        Returns:
            Providers in module name order
        """
        providers: List[ServiceProvider] = []
        try:
            package = importlib.import_module(self.provider_directory)
        except ImportError as e:
            self.logger.error(f"Could not import provider directory '{self.provider_directory}': {e}")
            return providers

        module_names = [
            f"{self.provider_directory}.{name}"
            for _, name, ispkg in pkgutil.iter_modules(package.__path__)
            if not ispkg and not name.startswith("_")
        ]
        self.logger.info(f"Discovered provider modules: {sorted(module_names)}")

        for module_name in sorted(module_names):
            provider = self._load_provider(module_name, app)
            if provider is not None:
                providers.append(provider)

        return providers

    def _load_provider(self, module_name: str, app: Any):
        try:
            module = importlib.import_module(module_name)
        except Exception as e:
            self.logger.error(f"Could not import provider module '{module_name}': {e}")
            return None

        provider_class = getattr(module, "provider", None)
        if provider_class is None:
            self.logger.warning(f"Module {module_name} does not have a 'provider' attribute")
            return None
        if not (isinstance(provider_class, type) and issubclass(provider_class, ServiceProvider)):
            self.logger.warning(f"Module {module_name} has 'provider' attribute but it's not a ServiceProvider class")
            return None

        try:
            return provider_class(app)
        except Exception as e:
            self.logger.error(f"Error creating provider from '{module_name}': {e}")
            return None
