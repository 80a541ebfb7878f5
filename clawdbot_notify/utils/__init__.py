"""
Utility modules for clawdbot-notify.
"""
