"""Dependency and framework detection from a Node.js package manifest."""