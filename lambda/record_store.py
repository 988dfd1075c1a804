import base64
import json
from decimal import Decimal

from boto3.dynamodb.types import Binary
from botocore.exceptions import BotoCoreError, ClientError

# Partition key de la tabla (definida en el stack)
KEY_ATTRIBUTE = 'id'


class RecordError(Exception):
    """Error que termina en una respuesta 400 con su mensaje como body."""


class UnsupportedRoute(RecordError):

    def __init__(self, route_key):
        super().__init__(f'Unsupported route: "{route_key}"')
        self.route_key = route_key


class MalformedBody(RecordError):
    pass


class MissingPathParameter(RecordError):

    def __init__(self, name):
        super().__init__(f'Missing path parameter "{name}"')
        self.name = name


class StoreFailure(RecordError):
    pass


class RecordEncoder(json.JSONEncoder):
    """Serializa los tipos que devuelve DynamoDB (Decimal, sets, Binary).

    Un Decimal que no cabe exacto en un float se devuelve como string.
    """

    def default(self, o):
        if isinstance(o, Decimal):
            if o == o.to_integral_value():
                return int(o)
            if Decimal(repr(float(o))) == o:
                return float(o)
            return str(o)
        if isinstance(o, (set, frozenset)):
            return sorted(o, key=str)
        if isinstance(o, Binary):
            return base64.b64encode(o.value).decode('ascii')
        return super().default(o)


def parse_record(body, fields):
    """Convierte el body de un PUT en el item completo a guardar.

    Solo se copian `id` y los campos configurados; el resto se descarta.
    """
    if body is None:
        raise MalformedBody('Request body is required')

    try:
        # DynamoDB no acepta float, solo Decimal
        data = json.loads(body, parse_float=Decimal)
    except ValueError as e:
        raise MalformedBody(str(e)) from e

    if not isinstance(data, dict):
        raise MalformedBody('Request body must be a JSON object')

    record_id = data.get(KEY_ATTRIBUTE)
    if not isinstance(record_id, str) or not record_id:
        raise MalformedBody(f'Field "{KEY_ATTRIBUTE}" must be a non-empty string')

    record = {KEY_ATTRIBUTE: record_id}
    for field in fields:
        if field in data:
            record[field] = data[field]
    return record


class RecordStore:
    """Acceso a la tabla de registros a través de un recurso `Table` de boto3."""

    def __init__(self, table):
        self.table = table

    def scan_all(self):
        items = []
        scan_args = {}
        while True:
            # Una página por llamada; se sigue LastEvaluatedKey hasta leer toda la tabla
            response = self._call(self.table.scan, **scan_args)
            items.extend(response.get('Items', []))
            last_key = response.get('LastEvaluatedKey')
            if not last_key:
                return items
            scan_args['ExclusiveStartKey'] = last_key

    def get(self, record_id):
        response = self._call(self.table.get_item, Key={KEY_ATTRIBUTE: record_id})
        return response.get('Item')

    def put(self, record):
        self._call(self.table.put_item, Item=record)

    def delete(self, record_id):
        # delete_item no falla si la clave no existe
        self._call(self.table.delete_item, Key={KEY_ATTRIBUTE: record_id})

    @staticmethod
    def _call(operation, **kwargs):
        try:
            return operation(**kwargs)
        except ClientError as e:
            message = e.response.get('Error', {}).get('Message') or str(e)
            raise StoreFailure(message) from e
        except BotoCoreError as e:
            raise StoreFailure(str(e)) from e
