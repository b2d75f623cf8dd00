import os

import numpy as np
import pandas as pd

FIRST_NAMES = ["Ana", "Luis", "María", "Jorge", "Sofía", "Carlos", "Valeria", "Diego", "Lucía", "Andrés"]
LAST_NAMES = ["Pérez", "García", "Hernández", "López", "Martínez", "Ramírez", "Torres", "Flores"]
STREETS = ["Av. Insurgentes Sur", "Calle Durango", "Av. Álvaro Obregón", "Calle Orizaba", "Av. Cuauhtémoc"]
VEHICLES = ["moto", "bicicleta", "auto"]


def _full_name():
    return f"{np.random.choice(FIRST_NAMES)} {np.random.choice(LAST_NAMES)}"


def generate_mock_orders(num_orders=40, missing_coordinates_ratio=0.1, output_file="sampledata/orders.csv"):
    """
    Generates pending orders for one day around Mexico City.
    A share of them has no coordinates, like orders whose customer was never geocoded:
    they can still be assigned but never appear on the map.
    """
    CENTER_LAT = 19.4326
    CENTER_LON = -99.1332

    data = []
    for order_index in range(num_orders):
        has_coordinates = np.random.random() >= missing_coordinates_ratio
        data.append({
            "id": order_index + 1,
            "numero_pedido": f"MM-2024-{str(order_index + 1).zfill(4)}",
            "cliente": _full_name(),
            "direccion_entrega": f"{np.random.choice(STREETS)} {np.random.randint(1, 400)}",
            # Totals in whole pesos, multiples of 500
            "total": int(np.random.randint(20, 400)) * 500,
            "lat": np.round(CENTER_LAT + np.random.uniform(-0.06, 0.06), 6) if has_coordinates else None,
            "lng": np.round(CENTER_LON + np.random.uniform(-0.06, 0.06), 6) if has_coordinates else None,
        })

    df = pd.DataFrame(data)
    df.to_csv(output_file, index=False)
    print(f"✅ Generated {num_orders} orders and saved to '{output_file}'")
    print(f"  Orders without coordinates: {int(df['lat'].isna().sum())}")
    return df


def generate_mock_drivers(count=8, output_file="sampledata/drivers.csv"):
    data = []
    for driver_index in range(count):
        data.append({
            "id": driver_index + 1,
            "codigo_repartidor": f"REP-{str(driver_index + 1).zfill(3)}",
            "nombre_completo": _full_name(),
            "tipo_vehiculo": np.random.choice(VEHICLES, p=[0.7, 0.2, 0.1]),
            "telefono": f"55{np.random.randint(10000000, 99999999)}",
            # 75% available, the rest already busy
            "estado": np.random.choice(["disponible", "ocupado"], p=[0.75, 0.25]),
        })

    df = pd.DataFrame(data)
    df.to_csv(output_file, index=False)
    print(f"✅ Generated {count} drivers and saved to '{output_file}'")
    print(df["estado"].value_counts().to_string())
    return df


if __name__ == "__main__":
    os.makedirs("sampledata", exist_ok=True)
    generate_mock_orders(num_orders=40)
    generate_mock_drivers(count=8)
