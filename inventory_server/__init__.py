"""
Inventory Server
Clients, tags, invoicing reports and privileged operations
"""
