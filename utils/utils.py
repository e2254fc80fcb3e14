import csv
import io
import os

import xlsxwriter
from django.conf import settings
from django.http import HttpResponse
from django.template.loader import render_to_string
from xhtml2pdf import pisa


def fetch_resources(uri, rel):
    """
    Fetch resources for xhtml2pdf.
    Resolves local static and media URLs to files on disk.
    """
    media_url = getattr(settings, 'MEDIA_URL', None)
    static_url = getattr(settings, 'STATIC_URL', None)
    if media_url and uri.startswith(media_url):  # Local media
        return os.path.join(settings.MEDIA_ROOT, uri.replace(media_url, "", 1))
    if static_url and uri.startswith(static_url):
        return os.path.join(settings.STATIC_ROOT, uri.replace(static_url, "", 1))
    return None


def render_to_pdf(template_src, context_dict=None):
    """Utility function to render HTML to PDF using xhtml2pdf"""
    html = render_to_string(template_src, context_dict or {})
    result = io.BytesIO()

    # Important: pass fetch_resources so images load properly
    pdf = pisa.pisaDocument(
        io.BytesIO(html.encode("UTF-8")),
        result,
        link_callback=fetch_resources
    )

    if not pdf.err:
        return result.getvalue()   # return bytes, not HttpResponse
    return None


def export_pdf_response(pdf_content, filename):
    """Create HTTP response for PDF download"""
    response = HttpResponse(pdf_content, content_type='application/pdf')
    response['Content-Disposition'] = f'attachment; filename="{filename}"'
    return response


def export_csv_response(filename, headers, rows, footer=()):
    """CSV download; ``footer`` rows are written after a blank line."""
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(headers)
    writer.writerows(rows)
    if footer:
        writer.writerow([])
        writer.writerows(footer)

    response = HttpResponse(buffer.getvalue(), content_type='text/csv')
    response['Content-Disposition'] = f'attachment; filename="{filename}.csv"'
    return response


def export_excel_response(filename, sheets):
    """
    Excel (.xlsx) download.

    ``sheets`` is a list of (title, headers, rows, money_columns) where
    money_columns holds the indexes of columns written with a currency format.
    """
    buffer = io.BytesIO()

    with xlsxwriter.Workbook(buffer, {'in_memory': True}) as workbook:
        header_format = workbook.add_format({
            'bold': True,
            'bg_color': '#3b5998',
            'font_color': 'white',
            'border': 1,
            'align': 'center'
        })
        money_format = workbook.add_format({'num_format': '#,##0.00'})
        date_format = workbook.add_format({'num_format': 'yyyy-mm-dd hh:mm'})

        for title, headers, rows, money_columns in sheets:
            worksheet = workbook.add_worksheet(title[:31])

            for col, header in enumerate(headers):
                worksheet.write(0, col, header, header_format)
                worksheet.set_column(col, col, max(12, len(header) + 4))

            for row_idx, row in enumerate(rows, start=1):
                for col, value in enumerate(row):
                    if col in money_columns and value is not None:
                        worksheet.write_number(row_idx, col, float(value), money_format)
                    elif hasattr(value, 'tzinfo'):
                        # xlsxwriter only takes naive datetimes
                        worksheet.write_datetime(row_idx, col, value.replace(tzinfo=None), date_format)
                    else:
                        worksheet.write(row_idx, col, value)

    response = HttpResponse(
        buffer.getvalue(),
        content_type='application/vnd.openxmlformats-officedocument.spreadsheetml.sheet',
    )
    response['Content-Disposition'] = f'attachment; filename="{filename}.xlsx"'
    return response
