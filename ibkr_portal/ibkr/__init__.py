"""
Interactive Brokers Client Portal Gateway integration.

Request dispatching (client.py), the resource/operation catalogue
(actions/), batch execution (node.py) and the polling trigger (trigger.py).
"""
