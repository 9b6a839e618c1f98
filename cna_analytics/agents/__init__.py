"""Optional LLM narrative layer. Agents describe snapshots; they never compute them."""
