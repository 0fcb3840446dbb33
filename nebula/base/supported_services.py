from typing import Literal


existing_services = Literal["compute"]


existing_cloud_providers = Literal["opennebula"]
