"""
Inventory Server - CSV Export
Converte linhas em CSV e entrega como download
"""
import io
from typing import Any, Dict, Iterable, List, Optional, Sequence

from fastapi.responses import StreamingResponse

CSV_MEDIA_TYPE = "text/csv;charset=utf-8"

# Caracteres que obrigam o campo a ir entre aspas
_NEEDS_QUOTES = (",", '"', "\n")


def escape_cell(value: Any) -> str:
    """
    Texto de uma celula.

    None vira string vazia; so campos com virgula, aspas ou quebra de
    linha vao entre aspas, com as aspas internas dobradas.
    """
    text = "" if value is None else str(value)
    if any(char in text for char in _NEEDS_QUOTES):
        return '"' + text.replace('"', '""') + '"'
    return text


def build_csv(rows: Sequence[Dict[str, Any]], columns: Optional[List[str]] = None) -> str:
    """
    Monta o texto CSV.

    Colunas: as informadas, senao as chaves da primeira linha. Sem linhas
    o resultado e so o cabecalho seguido de quebra de linha; com linhas,
    a ultima nao tem terminador.
    """
    if columns is None:
        columns = list(rows[0].keys()) if rows else []

    header = ",".join(escape_cell(column) for column in columns)
    if not rows:
        return header + "\n"

    body = "\n".join(
        ",".join(escape_cell(row.get(key)) for key in columns) for row in rows
    )
    return header + "\n" + body


def csv_response(
    rows: Iterable[Dict[str, Any]],
    filename: str,
    columns: Optional[List[str]] = None,
) -> StreamingResponse:
    """Resposta de download (attachment) com o CSV"""
    content = build_csv(list(rows), columns)
    return StreamingResponse(
        io.BytesIO(content.encode("utf-8")),
        media_type=CSV_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
