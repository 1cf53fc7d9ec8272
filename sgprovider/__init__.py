"""
sgprovider: security group resource handlers for an IaC provider plugin.
"""
__version__ = "0.3.0"
