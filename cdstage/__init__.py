"""Provisioning and deletion control logic for CD pipeline stages."""
