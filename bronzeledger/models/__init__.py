from bronzeledger.models.base import Base
from bronzeledger.models.aws_ec2_instance import (
    BronzeAWSEC2Instance,
    BronzeAWSEC2InstanceTag,
    BronzeHistoryAWSEC2Instance,
    BronzeHistoryAWSEC2InstanceTag,
)
from bronzeledger.models.digitalocean_database import (
    BronzeDODatabase,
    BronzeDODatabaseFirewallRule,
    BronzeHistoryDODatabase,
    BronzeHistoryDODatabaseFirewallRule,
)
from bronzeledger.models.runs import IngestionRun
from bronzeledger.models.sentinelone_agent import (
    BronzeHistoryS1Agent,
    BronzeHistoryS1AgentNIC,
    BronzeS1Agent,
    BronzeS1AgentNIC,
)
from bronzeledger.models.watermarks import IngestionWatermark

__all__ = [
    "Base",
    "BronzeAWSEC2Instance",
    "BronzeAWSEC2InstanceTag",
    "BronzeHistoryAWSEC2Instance",
    "BronzeHistoryAWSEC2InstanceTag",
    "BronzeDODatabase",
    "BronzeHistoryDODatabase",
    "BronzeDODatabaseFirewallRule",
    "BronzeHistoryDODatabaseFirewallRule",
    "BronzeS1Agent",
    "BronzeS1AgentNIC",
    "BronzeHistoryS1Agent",
    "BronzeHistoryS1AgentNIC",
    "IngestionRun",
    "IngestionWatermark",
]
