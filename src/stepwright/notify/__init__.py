from .slack import build_pr_message, notify_slack_on_pr

__all__ = ['build_pr_message', 'notify_slack_on_pr']
