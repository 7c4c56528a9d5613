"""
QuitFlow - Onboarding funnel for quitting nicotine.

Packages:
- onboarding: the wizard (state, draft store, calculator, gateways, controller)
- quitflow: settings, funnel logging and the command-line front end
"""

__version__ = "1.0.0"
