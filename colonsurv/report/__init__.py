"""Report documents and their html, pdf and docx writers."""
