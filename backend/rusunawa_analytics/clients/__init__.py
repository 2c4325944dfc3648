# Clients package
from rusunawa_analytics.clients.data_source import DataSource, StaticDataSource
from rusunawa_analytics.clients.rusunawa_client import RusunawaApiClient
