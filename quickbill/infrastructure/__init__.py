"""Infrastructure layer: storage backends and PDF rendering."""
