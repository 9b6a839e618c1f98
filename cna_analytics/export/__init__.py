"""Export document model handed to serialization collaborators."""
