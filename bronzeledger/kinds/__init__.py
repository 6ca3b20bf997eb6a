# Importing this package registers every resource kind.
from bronzeledger.kinds.aws_ec2_instance import EC2_INSTANCE
from bronzeledger.kinds.digitalocean_database import DO_DATABASE
from bronzeledger.kinds.digitalocean_database_firewall_rule import DO_DATABASE_FIREWALL_RULE
from bronzeledger.kinds.sentinelone_agent import S1_AGENT

__all__ = ["EC2_INSTANCE", "DO_DATABASE", "DO_DATABASE_FIREWALL_RULE", "S1_AGENT"]
