"""Git branching workflow tool.

Features:
- Start task branches from dev and merge them back
- Start fix branches from a release branch and merge them into the latest release and dev
- Push the latest release branch and dev in one step
- Guards against dirty working trees and wrong starting branches
- Lists conflicted files when a merge stops
"""

__version__ = "0.1.0"
