from tex2pdf.cli import app

app(prog_name="tex2pdf")
