"""Safety gates, apply state and git/gh runners for draft pull requests."""