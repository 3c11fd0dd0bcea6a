"""Core building blocks: constraint algebra, manifests, include chains."""
