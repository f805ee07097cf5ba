from pdfwrap.main import run

raise SystemExit(run())
