"""scopestore: scoped key-value storage with change notifications."""
