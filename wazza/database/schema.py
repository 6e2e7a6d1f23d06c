schema = [
    {"table_name":"user_table",
    "table_columns":{
        "id":"INTEGER PRIMARY KEY AUTOINCREMENT",
        "email":"VARCHAR UNIQUE NOT NULL",
        "display_name":"TEXT NOT NULL",
        "phone":"TEXT",
        "national_id":"VARCHAR UNIQUE",
        "role":"VARCHAR NOT NULL DEFAULT 'user' CHECK (role IN ('admin', 'user', 'business'))",
        "status":"VARCHAR NOT NULL DEFAULT 'pending' CHECK (status IN ('pending', 'active', 'suspended', 'banned'))",
        "address":"TEXT DEFAULT 'Harare, Zimbabwe'",
        "latitude":"FLOAT DEFAULT -17.8252",
        "longitude":"FLOAT DEFAULT 31.0335",
        "avatar_url":"TEXT",
        "created_at":"TIMESTAMP DEFAULT CURRENT_TIMESTAMP",
        "updated_at":"TIMESTAMP DEFAULT CURRENT_TIMESTAMP",
        "INDEX":[["role"], ["status"]]
        }},
    {"table_name":"user_password_table",
    "table_columns":{
        "user_id":"INTEGER PRIMARY KEY",
        "password_hash":"TEXT NOT NULL",
        "updated_at":"TIMESTAMP DEFAULT CURRENT_TIMESTAMP",
        "FOREIGN KEY":[{
                "key":"user_id",
                "parent_table":"user_table",
                "parent_key":"id",
                "instruction":"ON DELETE CASCADE"
            }]
        }},
    {"table_name":"session_table",
    "table_columns":{
        "id":"VARCHAR PRIMARY KEY",     # 32 random bytes, hex
        "user_id":"INTEGER NOT NULL",
        "created_at":"TIMESTAMP DEFAULT CURRENT_TIMESTAMP",
        "last_accessed":"TIMESTAMP DEFAULT CURRENT_TIMESTAMP",
        "expires_at":"TIMESTAMP NOT NULL",
        "FOREIGN KEY":[{
                "key":"user_id",
                "parent_table":"user_table",
                "parent_key":"id",
                "instruction":"ON DELETE CASCADE"
            }],
        "INDEX":[["user_id"]]
        }},
    {"table_name":"business_table",
    "table_columns":{
        "id":"INTEGER PRIMARY KEY AUTOINCREMENT",
        "owner_id":"INTEGER NOT NULL",
        "business_name":"TEXT NOT NULL",
        "business_type":"TEXT NOT NULL",
        "description":"TEXT",
        "phone":"TEXT",
        "website":"TEXT",
        "address":"TEXT",
        "latitude":"FLOAT",
        "longitude":"FLOAT",
        "status":"VARCHAR NOT NULL DEFAULT 'pending' CHECK (status IN ('pending', 'active', 'suspended', 'banned', 'rejected'))",
        "approved_at":"TIMESTAMP",
        "approved_by":"INTEGER",
        "created_at":"TIMESTAMP DEFAULT CURRENT_TIMESTAMP",
        "updated_at":"TIMESTAMP DEFAULT CURRENT_TIMESTAMP",
        "FOREIGN KEY":[{
                "key":"owner_id",
                "parent_table":"user_table",
                "parent_key":"id"
            },
            {
                "key":"approved_by",
                "parent_table":"user_table",
                "parent_key":"id"
            }],
        "INDEX":[["owner_id"], ["status"]]
        }},
    {"table_name":"product_table",
    "table_columns":{
        "id":"INTEGER PRIMARY KEY AUTOINCREMENT",
        "business_id":"INTEGER NOT NULL",
        "name":"TEXT NOT NULL",
        "description":"TEXT",
        "price":"FLOAT NOT NULL",
        "image_url":"TEXT",
        "category":"TEXT",
        "created_at":"TIMESTAMP DEFAULT CURRENT_TIMESTAMP",
        "updated_at":"TIMESTAMP DEFAULT CURRENT_TIMESTAMP",
        "FOREIGN KEY":[{
                "key":"business_id",
                "parent_table":"business_table",
                "parent_key":"id",
                "instruction":"ON DELETE CASCADE"
            }],
        "INDEX":[["business_id"]]
        }},
    {
        "table_name":"order_table",
        "table_columns":{
            "id":"INTEGER PRIMARY KEY AUTOINCREMENT",
            "business_id":"INTEGER NOT NULL",
            "buyer_id":"INTEGER NOT NULL",
            "total_amount":"FLOAT NOT NULL DEFAULT 0.0",
            "currency":"VARCHAR NOT NULL DEFAULT 'USD'",
            "status":"VARCHAR NOT NULL DEFAULT 'pending' CHECK (status IN ('pending', 'collected', 'cancelled'))",
            "shipping_address":"TEXT",
            "redemption_code":"VARCHAR NOT NULL",
            "completed_at":"TIMESTAMP",
            "created_at":"TIMESTAMP DEFAULT CURRENT_TIMESTAMP",
            "updated_at":"TIMESTAMP DEFAULT CURRENT_TIMESTAMP",
            "FOREIGN KEY":[{
                    "key":"business_id",
                    "parent_table":"business_table",
                    "parent_key":"id"
                },
                {
                    "key":"buyer_id",
                    "parent_table":"user_table",
                    "parent_key":"id"
                }],
            "INDEX":[["business_id"], ["buyer_id"], ["status"]]
        }},
    {
        "table_name":"order_item_table",    # unit_price is the product price when ordered
        "table_columns":{
            "id":"INTEGER PRIMARY KEY AUTOINCREMENT",
            "order_id":"INTEGER NOT NULL",
            "product_id":"INTEGER",
            "quantity":"INTEGER NOT NULL",
            "unit_price":"FLOAT NOT NULL",
            "total_price":"FLOAT NOT NULL",
            "FOREIGN KEY":[{
                    "key":"order_id",
                    "parent_table":"order_table",
                    "parent_key":"id",
                    "instruction":"ON DELETE CASCADE"
                },
                {
                    "key":"product_id",
                    "parent_table":"product_table",
                    "parent_key":"id",
                    "instruction":"ON DELETE SET NULL"
                }],
            "INDEX":[["order_id"]]
        }},
    {
        "table_name":"gift_order_table",
        "table_columns":{
            "id":"INTEGER PRIMARY KEY AUTOINCREMENT",
            "order_id":"INTEGER UNIQUE NOT NULL",
            "redemption_code":"VARCHAR NOT NULL",
            "recipient_name":"TEXT NOT NULL",
            "recipient_phone":"TEXT NOT NULL",
            "recipient_national_id":"TEXT NOT NULL",    # Fernet token
            "sender_name":"TEXT",
            "sender_phone":"TEXT",
            "is_redeemed":"BOOL NOT NULL DEFAULT FALSE",
            "redeemed_at":"TIMESTAMP",
            "created_at":"TIMESTAMP DEFAULT CURRENT_TIMESTAMP",
            "FOREIGN KEY":[{
                    "key":"order_id",
                    "parent_table":"order_table",
                    "parent_key":"id",
                    "instruction":"ON DELETE CASCADE"
                }]
        }},
    {
        "table_name":"notification_table",
        "table_columns":{
            "id":"INTEGER PRIMARY KEY AUTOINCREMENT",
            "recipient_id":"INTEGER NOT NULL",
            "recipient_type":"VARCHAR NOT NULL DEFAULT 'user' CHECK (recipient_type IN ('user', 'business'))",
            "type":"VARCHAR NOT NULL",
            "title":"TEXT NOT NULL",
            "message":"TEXT NOT NULL",
            "data":"TEXT DEFAULT '{}'",
            "sent_at":"TIMESTAMP DEFAULT CURRENT_TIMESTAMP",
            "read_at":"TIMESTAMP",
            "INDEX":[["recipient_type", "recipient_id"]]
        }},
]
