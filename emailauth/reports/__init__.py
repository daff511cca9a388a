"""Evidence file exporters (CSV and HTML) for completed scans."""
