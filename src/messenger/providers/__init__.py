from .app import AdaptersProvider, GatewaysProvider, ServicesProvider
