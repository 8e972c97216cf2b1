"""HTTP surface: constraint catalog and streamed runs over Server-Sent Events."""
